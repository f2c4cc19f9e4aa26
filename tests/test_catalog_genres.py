# tests/test_catalog_genres.py
import pytest

import catalog
from catalog import RecordNotFound
from data_models import db, Genre


def test_create_genre(app):
    outcome = catalog.create_genre({'name': ' Science Fiction '})
    assert outcome.ok
    assert db.session.get(Genre, outcome.record.id).name == 'Science Fiction'


def test_create_genre_twice_returns_existing(app):
    """Creating the same genre name again yields the first record"""
    first = catalog.create_genre({'name': 'Fantasy'})
    first_id = first.record.id
    second = catalog.create_genre({'name': 'Fantasy'})
    assert second.ok
    assert second.record.id == first_id
    assert Genre.query.filter(Genre.name == 'Fantasy').count() == 1


def test_genre_name_match_is_case_sensitive(app, make_genre):
    make_genre('Fantasy')
    outcome = catalog.create_genre({'name': 'fantasy'})
    assert outcome.ok
    assert Genre.query.count() == 2


@pytest.mark.parametrize('name, message', [
    ('', 'Genre name required'),
    ('  ', 'Genre name required'),
    ('SF', 'Genre name must be between 3 and 100 characters.'),
    ('x' * 101, 'Genre name must be between 3 and 100 characters.'),
])
def test_create_genre_validation(app, name, message):
    outcome = catalog.create_genre({'name': name})
    assert [(e.field, e.message) for e in outcome.errors] == [('name', message)]
    assert Genre.query.count() == 0


def test_list_genres(app, make_genre):
    make_genre('Poetry')
    make_genre('Horror')
    assert [g.name for g in catalog.list_genres()] == ['Poetry', 'Horror']


def test_genre_detail(app, make_genre, make_book):
    fantasy = make_genre('Fantasy')
    poetry = make_genre('Poetry')
    book = make_book(genres=[fantasy])
    make_book('Leaves of Grass', genres=[poetry])
    payload = catalog.genre_detail(fantasy.id)
    assert payload['genre'].name == 'Fantasy'
    assert [b.id for b in payload['genre_books']] == [book.id]
    assert payload['genre_books'][0].author.family_name == 'Rothfuss'


def test_genre_detail_missing(app):
    with pytest.raises(RecordNotFound):
        catalog.genre_detail(1)


def test_update_genre(app, make_genre):
    genre = make_genre('Fantsy')
    outcome = catalog.update_genre(genre.id, {'name': 'Fantasy'})
    assert outcome.ok
    assert outcome.record.id == genre.id
    assert db.session.get(Genre, genre.id).name == 'Fantasy'


def test_rejected_genre_update_returns_current(app, make_genre):
    genre = make_genre('Fantasy')
    outcome = catalog.update_genre(genre.id, {'name': ''})
    assert not outcome.ok
    assert outcome.record.name == 'Fantasy'
    assert catalog.genre_update_form(genre.id).record.name == 'Fantasy'
    with pytest.raises(RecordNotFound):
        catalog.genre_update_form(404)


def test_delete_genre_blocked_by_books(app, make_genre, make_book):
    genre = make_genre()
    book = make_book(genres=[genre])
    form = catalog.genre_delete_form(genre.id)
    assert form.blocked
    assert [b.id for b in form.dependents] == [book.id]
    outcome = catalog.delete_genre(genre.id)
    assert outcome.blocked
    assert db.session.get(Genre, genre.id) is not None


def test_delete_unused_genre(app, make_genre):
    genre_id = make_genre().id
    outcome = catalog.delete_genre(genre_id)
    assert outcome.deleted
    assert db.session.get(Genre, genre_id) is None


def test_delete_missing_genre(app):
    assert catalog.genre_delete_form(3).missing
    assert catalog.delete_genre(3).missing


def test_escaped_genre_name_must_fit(app):
    outcome = catalog.create_genre({'name': '&' * 100})
    assert [(e.field, e.message) for e in outcome.errors] == [
        ('name', 'Genre name must be between 3 and 100 characters.'),
    ]
    assert Genre.query.count() == 0
