# tests/test_validation.py
from datetime import date

from werkzeug.datastructures import MultiDict

from validation import FormData, FieldError


def test_required_trims_and_escapes():
    """Required fields are trimmed and HTML-escaped"""
    form = FormData({'title': '  <b>Dune</b>  '})
    form.required('title', 'Title must not be empty.')
    assert form.valid
    assert form.values['title'] == '&lt;b&gt;Dune&lt;/b&gt;'


def test_required_rejects_blank_and_whitespace():
    """Absent, empty and whitespace-only values all fail"""
    for raw in ({}, {'title': ''}, {'title': '   '}):
        form = FormData(raw)
        form.required('title', 'Title must not be empty.')
        assert not form.valid
        assert form.errors[0].field == 'title'
        assert form.errors[0].message == 'Title must not be empty.'


def test_required_length_bounds():
    """Length rules use the dedicated message"""
    form = FormData({'name': 'ab', 'other': 'x' * 101})
    form.required('name', 'Genre name required', min_length=3, length_message='Too short')
    form.required('other', 'Required', max_length=100, length_message='Too long')
    assert [e.message for e in form.errors] == ['Too short', 'Too long']


def test_required_alphanumeric():
    """Names must be plain ASCII letters and digits"""
    form = FormData({'first_name': 'Jean-Luc', 'family_name': 'Picard2'})
    form.required('first_name', 'Required', alphanumeric='First name has non-alphanumeric characters.')
    form.required('family_name', 'Required', alphanumeric='Family name has non-alphanumeric characters.')
    assert form.errors == [FieldError('first_name', 'First name has non-alphanumeric characters.', 'Jean-Luc')]


def test_errors_keep_call_order():
    form = FormData({})
    form.required('b', 'b missing')
    form.required('a', 'a missing')
    assert [e.field for e in form.errors] == ['b', 'a']


def test_optional_date():
    """Empty dates are unset; bad dates are errors"""
    form = FormData({'born': '1973-06-06', 'died': '', 'due': '2024-13-40'})
    assert form.optional_date('born', 'Invalid date of birth') == date(1973, 6, 6)
    assert form.optional_date('died', 'Invalid date of death') is None
    assert form.optional_date('missing', 'Invalid') is None
    assert form.optional_date('due', 'Invalid date') is None
    assert [e.field for e in form.errors] == ['due']


def test_reference():
    form = FormData({'author': ' 12 ', 'book': 'abc'})
    assert form.reference('author', 'Author must not be empty.') == 12
    assert form.reference('book', 'Book must be specified') is None
    assert form.reference('missing', 'Missing') is None
    assert [e.field for e in form.errors] == ['book', 'missing']


def test_many_normalizes_scalars_lists_and_absence():
    """Multi-valued fields always come out as a list, never an error"""
    assert FormData({}).many('genre') == []
    assert FormData({'genre': '3'}).many('genre') == [3]
    assert FormData({'genre': ['3', '1', '3', 'x']}).many('genre') == [3, 1]


def test_many_reads_multidict():
    form = FormData(MultiDict([('genre', '2'), ('genre', '5')]))
    assert form.many('genre') == [2, 5]
    assert form.valid


def test_choice_default_and_rejection():
    statuses = ('Available', 'Loaned')
    form = FormData({'status': 'Lost'})
    assert FormData({}).choice('status', statuses, 'Bad', default='Available') == 'Available'
    form.choice('status', statuses, 'Bad')
    assert not form.valid


def test_length_is_measured_on_the_stored_value():
    """Escaping can push a value past its limit"""
    form = FormData({'name': '&' * 30})
    form.required('name', 'Genre name required', max_length=100, length_message='Too long')
    assert form.errors == [FieldError('name', 'Too long', '&' * 30)]
    assert form.values['name'] == '&amp;' * 30


def test_many_reports_values_that_are_not_ids():
    form = FormData({'genre': ['2', 'abc', 'xyz']})
    assert form.many('genre', 'Genre selection is invalid.') == [2]
    assert form.errors == [FieldError('genre', 'Genre selection is invalid.', ['2', 'abc', 'xyz'])]
