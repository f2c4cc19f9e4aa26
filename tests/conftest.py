# tests/conftest.py
import pytest

from app import create_app
from data_models import db, Author, Book, Genre, BookInstance


@pytest.fixture
def app(tmp_path):
    """Create an app backed by a throwaway SQLite file"""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'library.sqlite'}",
        'SECRET_KEY': 'test',
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_author(app):
    def make(first_name='Patrick', family_name='Rothfuss', **fields):
        author = Author(first_name=first_name, family_name=family_name, **fields)
        db.session.add(author)
        db.session.commit()
        return author
    return make


@pytest.fixture
def make_genre(app):
    def make(name='Fantasy'):
        genre = Genre(name=name)
        db.session.add(genre)
        db.session.commit()
        return genre
    return make


@pytest.fixture
def make_book(app, make_author):
    def make(title='The Name of the Wind', author=None, genres=(), **fields):
        author = author or make_author()
        fields.setdefault('summary', 'A tale of Kvothe.')
        fields.setdefault('isbn', '9781473211896')
        book = Book(title=title, author_id=author.id, genres=list(genres), **fields)
        db.session.add(book)
        db.session.commit()
        return book
    return make


@pytest.fixture
def make_copy(app, make_book):
    def make(book=None, imprint='Gollancz, 2007', status='Available', **fields):
        book = book or make_book()
        copy = BookInstance(book_id=book.id, imprint=imprint, status=status, **fields)
        db.session.add(copy)
        db.session.commit()
        return copy
    return make
