from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

LOAN_STATUSES = ("Available", "Maintenance", "Loaned", "Reserved")


book_genres = db.Table(
    'book_genres',
    db.Column('book_id', db.Integer, db.ForeignKey('books.id'), primary_key=True),
    db.Column('genre_id', db.Integer, db.ForeignKey('genres.id'), primary_key=True),
)


class Author(db.Model):
    __tablename__ = 'authors'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    first_name = db.Column(db.String(100), nullable=False)
    family_name = db.Column(db.String(100), nullable=False)
    date_of_birth = db.Column(db.Date, nullable=True)
    date_of_death = db.Column(db.Date, nullable=True)

    books = db.relationship('Book', back_populates='author')

    def __repr__(self):
        return f"<Author id={self.id} family_name={self.family_name!r}>"

    def __str__(self):
        return author_name(self)


class Genre(db.Model):
    __tablename__ = 'genres'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(100), nullable=False)

    books = db.relationship('Book', secondary=book_genres, back_populates='genres')

    def __repr__(self):
        return f"<Genre id={self.id} name={self.name!r}>"


class Book(db.Model):
    __tablename__ = 'books'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    title = db.Column(db.String(255), nullable=False)
    summary = db.Column(db.Text, nullable=False)
    isbn = db.Column(db.String(20), nullable=False)

    author_id = db.Column(db.Integer, db.ForeignKey('authors.id'), nullable=False)
    author = db.relationship('Author', back_populates='books')
    genres = db.relationship('Genre', secondary=book_genres, back_populates='books', order_by='Genre.id')
    instances = db.relationship('BookInstance', back_populates='book')

    def __repr__(self):
        return f"<Book id={self.id} isbn={self.isbn!r} title={self.title!r}>"


class BookInstance(db.Model):
    __tablename__ = 'book_instances'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    imprint = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(20), nullable=False, default='Maintenance')
    due_back = db.Column(db.Date, nullable=True)

    book_id = db.Column(db.Integer, db.ForeignKey('books.id'), nullable=False)
    book = db.relationship('Book', back_populates='instances')

    def __repr__(self):
        return f"<BookInstance id={self.id} book_id={self.book_id} status={self.status!r}>"


URL_PREFIXES = {
    Author: '/catalog/author/',
    Book: '/catalog/book/',
    Genre: '/catalog/genre/',
    BookInstance: '/catalog/bookinstance/',
}


def author_name(author) -> str:
    """'family_name, first_name', or '' unless both parts are set."""
    if author is None or not author.first_name or not author.family_name:
        return ''
    return f"{author.family_name}, {author.first_name}"


def author_lifespan(author) -> str:
    born = author.date_of_birth.year if author.date_of_birth else ''
    died = author.date_of_death.year if author.date_of_death else ''
    return f"{born} - {died}"


def record_url(record) -> str:
    return URL_PREFIXES[type(record)] + str(record.id)
