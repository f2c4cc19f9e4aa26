"""Catalog operations for authors, books, genres and book copies.

Every operation either returns a result for the view layer or raises
``RecordNotFound``. Validation failures and blocked deletes are ordinary
results. Store errors propagate unchanged.
"""
import logging
from dataclasses import dataclass, field

from data_models import Author, Book, Genre, BookInstance, LOAN_STATUSES
from store import EntityStore, parallel
from validation import FormData

logger = logging.getLogger(__name__)

authors = EntityStore(Author)
books = EntityStore(Book)
genres = EntityStore(Genre)
copies = EntityStore(BookInstance)


class RecordNotFound(LookupError):
    def __init__(self, kind, ident):
        super().__init__(f"{kind} not found: {ident}")
        self.kind = kind
        self.ident = ident


@dataclass
class Outcome:
    """Result of showing or submitting a create/update form.

    ``record`` is the persisted record after a successful submission, or the
    stored record when an update was rejected. ``attempt`` holds the
    sanitized submitted values for redisplay.
    """
    record: object = None
    attempt: dict = field(default_factory=dict)
    errors: list = field(default_factory=list)
    choices: dict = field(default_factory=dict)
    selected: set = field(default_factory=set)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class DeleteOutcome:
    record: object = None
    dependents: list = field(default_factory=list)
    deleted: bool = False

    @property
    def blocked(self) -> bool:
        return bool(self.dependents)

    @property
    def missing(self) -> bool:
        return self.record is None


def _require(record, kind, ident):
    if record is None:
        raise RecordNotFound(kind, ident)
    return record


def _delete(kind, store, ident, lookup):
    record, dependents = lookup(ident)
    if record is None:
        return DeleteOutcome()
    if dependents:
        logger.warning("Refusing to delete %s id=%s: %d dependent record(s)", kind, ident, len(dependents))
        return DeleteOutcome(record, dependents)
    store.delete_by_id(ident)
    logger.info("Deleted %s id=%s", kind, ident)
    return DeleteOutcome(record, deleted=True)


def library_counts():
    return parallel(
        book_count=lambda: books.count(),
        book_instance_count=lambda: copies.count(),
        book_instance_available_count=lambda: copies.count(BookInstance.status == 'Available'),
        author_count=lambda: authors.count(),
        genre_count=lambda: genres.count(),
    )


# Authors

def list_authors():
    return authors.find(order_by=Author.family_name.asc())


def _author_with_books(author_id):
    results = parallel(
        author=lambda: authors.find_by_id(author_id),
        author_books=lambda: books.find(Book.author_id == author_id, order_by=Book.title.asc()),
    )
    return results['author'], results['author_books']


def author_detail(author_id):
    author, author_books = _author_with_books(author_id)
    _require(author, 'Author', author_id)
    return {'author': author, 'author_books': author_books}


def _author_form(raw):
    form = FormData(raw)
    form.required('first_name', 'First name must be specified.', max_length=100,
                  alphanumeric='First name has non-alphanumeric characters.',
                  length_message='First name must be at most 100 characters.')
    form.required('family_name', 'Family name must be specified.', max_length=100,
                  alphanumeric='Family name has non-alphanumeric characters.',
                  length_message='Family name must be at most 100 characters.')
    form.optional_date('date_of_birth', 'Invalid date of birth')
    form.optional_date('date_of_death', 'Invalid date of death')
    return form


def author_create_form():
    return Outcome()


def create_author(raw):
    form = _author_form(raw)
    if not form.valid:
        return Outcome(attempt=form.values, errors=form.errors)
    author = authors.insert(**form.values)
    logger.info("Created Author id=%s", author.id)
    return Outcome(record=author)


def author_update_form(author_id):
    return Outcome(record=_require(authors.find_by_id(author_id), 'Author', author_id))


def update_author(author_id, raw):
    form = _author_form(raw)
    if not form.valid:
        current = _require(authors.find_by_id(author_id), 'Author', author_id)
        return Outcome(record=current, attempt=form.values, errors=form.errors)
    author = _require(authors.update_by_id(author_id, **form.values), 'Author', author_id)
    logger.info("Updated Author id=%s", author_id)
    return Outcome(record=author)


def author_delete_form(author_id):
    author, author_books = _author_with_books(author_id)
    if author is None:
        return DeleteOutcome()
    return DeleteOutcome(author, author_books)


def delete_author(author_id):
    return _delete('Author', authors, author_id, _author_with_books)


# Books

def _book_choice_reads():
    return {
        'authors': lambda: authors.find(order_by=Author.family_name.asc()),
        'genres': lambda: genres.find(order_by=Genre.name.asc()),
    }


def list_books():
    return books.find(order_by=Book.title.asc(), populate=('author',))


def _book_with_copies(book_id):
    results = parallel(
        book=lambda: books.find_by_id(book_id, populate=('author', 'genres')),
        book_instances=lambda: copies.find(BookInstance.book_id == book_id, order_by=BookInstance.id.asc()),
    )
    return results['book'], results['book_instances']


def book_detail(book_id):
    book, book_instances = _book_with_copies(book_id)
    _require(book, 'Book', book_id)
    return {'book': book, 'book_instances': book_instances}


def _book_form(raw):
    form = FormData(raw)
    form.required('title', 'Title must not be empty.', max_length=255,
                  length_message='Title must be at most 255 characters.')
    form.reference('author', 'Author must not be empty.')
    form.required('summary', 'Summary must not be empty.')
    form.required('isbn', 'ISBN must not be empty.', max_length=20,
                  length_message='ISBN must be at most 20 characters.')
    form.many('genre', 'Genre selection is invalid.')

    author_id = form.values['author']
    if author_id is not None and authors.find_by_id(author_id) is None:
        form.error('author', 'Author must be an existing author.')
    genre_ids = form.values['genre']
    found = genres.find(Genre.id.in_(genre_ids)) if genre_ids else []
    if len(found) != len(genre_ids):
        form.error('genre', 'Genre must be an existing genre.')
    fields = {
        'title': form.values['title'],
        'author_id': author_id,
        'summary': form.values['summary'],
        'isbn': form.values['isbn'],
        'genres': found,
    }
    return form, fields


def _rejected_book(form, current=None):
    return Outcome(
        record=current,
        attempt=form.values,
        errors=form.errors,
        choices=parallel(**_book_choice_reads()),
        selected=set(form.values['genre']),
    )


def book_create_form():
    return Outcome(choices=parallel(**_book_choice_reads()))


def create_book(raw):
    form, fields = _book_form(raw)
    if not form.valid:
        return _rejected_book(form)
    book = books.insert(**fields)
    logger.info("Created Book id=%s", book.id)
    return Outcome(record=book)


def book_update_form(book_id):
    results = parallel(
        book=lambda: books.find_by_id(book_id, populate=('author', 'genres')),
        **_book_choice_reads(),
    )
    book = _require(results.pop('book'), 'Book', book_id)
    return Outcome(record=book, choices=results, selected={genre.id for genre in book.genres})


def update_book(book_id, raw):
    form, fields = _book_form(raw)
    if not form.valid:
        current = _require(books.find_by_id(book_id, populate=('author', 'genres')), 'Book', book_id)
        return _rejected_book(form, current)
    book = _require(books.update_by_id(book_id, **fields), 'Book', book_id)
    logger.info("Updated Book id=%s", book_id)
    return Outcome(record=book)


def book_delete_form(book_id):
    book, book_instances = _book_with_copies(book_id)
    if book is None:
        return DeleteOutcome()
    return DeleteOutcome(book, book_instances)


def delete_book(book_id):
    return _delete('Book', books, book_id, _book_with_copies)


# Genres

def list_genres():
    return genres.find(order_by=Genre.id.asc())


def _genre_with_books(genre_id):
    results = parallel(
        genre=lambda: genres.find_by_id(genre_id),
        genre_books=lambda: books.find(
            Book.genres.any(Genre.id == genre_id),
            order_by=Book.title.asc(),
            populate=('author', 'genres'),
        ),
    )
    return results['genre'], results['genre_books']


def genre_detail(genre_id):
    genre, genre_books = _genre_with_books(genre_id)
    _require(genre, 'Genre', genre_id)
    return {'genre': genre, 'genre_books': genre_books}


def _genre_form(raw):
    form = FormData(raw)
    form.required('name', 'Genre name required', min_length=3, max_length=100,
                  length_message='Genre name must be between 3 and 100 characters.')
    return form


def genre_create_form():
    return Outcome()


def create_genre(raw):
    """Create a genre, or return the existing one with the same name."""
    form = _genre_form(raw)
    if not form.valid:
        return Outcome(attempt=form.values, errors=form.errors)
    existing = genres.find_one(Genre.name == form.values['name'])
    if existing is not None:
        logger.info("Genre %r already exists as id=%s", existing.name, existing.id)
        return Outcome(record=existing)
    genre = genres.insert(**form.values)
    logger.info("Created Genre id=%s", genre.id)
    return Outcome(record=genre)


def genre_update_form(genre_id):
    return Outcome(record=_require(genres.find_by_id(genre_id), 'Genre', genre_id))


def update_genre(genre_id, raw):
    form = _genre_form(raw)
    if not form.valid:
        current = _require(genres.find_by_id(genre_id), 'Genre', genre_id)
        return Outcome(record=current, attempt=form.values, errors=form.errors)
    genre = _require(genres.update_by_id(genre_id, **form.values), 'Genre', genre_id)
    logger.info("Updated Genre id=%s", genre_id)
    return Outcome(record=genre)


def genre_delete_form(genre_id):
    genre, genre_books = _genre_with_books(genre_id)
    if genre is None:
        return DeleteOutcome()
    return DeleteOutcome(genre, genre_books)


def delete_genre(genre_id):
    return _delete('Genre', genres, genre_id, _genre_with_books)


# Book copies

def _book_list():
    return books.find(order_by=Book.title.asc())


def list_bookinstances():
    return copies.find(order_by=BookInstance.id.asc(), populate=('book',))


def bookinstance_detail(instance_id):
    instance = copies.find_by_id(instance_id, populate=('book',))
    return _require(instance, 'BookInstance', instance_id)


def _bookinstance_form(raw):
    form = FormData(raw)
    form.reference('book', 'Book must be specified')
    form.required('imprint', 'Imprint must be specified', max_length=255,
                  length_message='Imprint must be at most 255 characters.')
    form.choice('status', LOAN_STATUSES,
                'Status must be one of: ' + ', '.join(LOAN_STATUSES) + '.',
                default='Maintenance')
    form.optional_date('due_back', 'Invalid date')

    book_id = form.values['book']
    if book_id is not None and books.find_by_id(book_id) is None:
        form.error('book', 'Book must be an existing book.')
    fields = {
        'book_id': book_id,
        'imprint': form.values['imprint'],
        'status': form.values['status'],
        'due_back': form.values['due_back'],
    }
    return form, fields


def _selected_book(form):
    return {form.values['book']} if form.values['book'] is not None else set()


def bookinstance_create_form():
    return Outcome(choices={'book_list': _book_list()})


def create_bookinstance(raw):
    form, fields = _bookinstance_form(raw)
    if not form.valid:
        return Outcome(attempt=form.values, errors=form.errors,
                       choices={'book_list': _book_list()}, selected=_selected_book(form))
    instance = copies.insert(**fields)
    logger.info("Created BookInstance id=%s", instance.id)
    return Outcome(record=instance)


def _bookinstance_with_books(instance_id):
    results = parallel(
        bookinstance=lambda: copies.find_by_id(instance_id, populate=('book',)),
        book_list=_book_list,
    )
    instance = _require(results.pop('bookinstance'), 'BookInstance', instance_id)
    return instance, results


def bookinstance_update_form(instance_id):
    instance, choices = _bookinstance_with_books(instance_id)
    return Outcome(record=instance, choices=choices, selected={instance.book_id})


def update_bookinstance(instance_id, raw):
    form, fields = _bookinstance_form(raw)
    if not form.valid:
        current, choices = _bookinstance_with_books(instance_id)
        return Outcome(record=current, attempt=form.values, errors=form.errors,
                       choices=choices, selected=_selected_book(form))
    instance = _require(copies.update_by_id(instance_id, **fields), 'BookInstance', instance_id)
    logger.info("Updated BookInstance id=%s", instance_id)
    return Outcome(record=instance)


def bookinstance_delete_form(instance_id):
    return DeleteOutcome(bookinstance_detail(instance_id))


def delete_bookinstance(instance_id):
    instance = bookinstance_detail(instance_id)
    copies.delete_by_id(instance_id)
    logger.info("Deleted BookInstance id=%s", instance_id)
    return DeleteOutcome(instance, deleted=True)
