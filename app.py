import logging
import os

import click
from flask import Blueprint, Flask, flash, redirect, render_template, request, url_for
from sqlalchemy.exc import SQLAlchemyError

import catalog
from catalog import RecordNotFound
from data_models import db, author_lifespan, author_name, record_url, LOAN_STATUSES

logger = logging.getLogger(__name__)

basedir = os.path.abspath(os.path.dirname(__file__))

bp = Blueprint('catalog', __name__, url_prefix='/catalog')


@bp.get('/')
def index():
    return render_template('index.html', title='Local Library Home', data=catalog.library_counts())


# Authors

@bp.get('/authors')
def author_list():
    return render_template('author_list.html', title='Author List', author_list=catalog.list_authors())


@bp.get('/author/<int:author_id>')
def author_detail(author_id: int):
    return render_template('author_detail.html', title='Author Detail', **catalog.author_detail(author_id))


@bp.route('/author/create', methods=['GET', 'POST'])
def author_create():
    if request.method == 'POST':
        outcome = catalog.create_author(request.form)
        if outcome.ok:
            flash('Author created.', 'success')
            return redirect(record_url(outcome.record))
    else:
        outcome = catalog.author_create_form()
    return render_template('author_form.html', title='Create Author', outcome=outcome)


@bp.route('/author/<int:author_id>/update', methods=['GET', 'POST'])
def author_update(author_id: int):
    if request.method == 'POST':
        outcome = catalog.update_author(author_id, request.form)
        if outcome.ok:
            flash('Author updated.', 'success')
            return redirect(record_url(outcome.record))
    else:
        outcome = catalog.author_update_form(author_id)
    return render_template('author_form.html', title='Update Author', outcome=outcome)


@bp.route('/author/<int:author_id>/delete', methods=['GET', 'POST'])
def author_delete(author_id: int):
    if request.method == 'POST':
        outcome = catalog.delete_author(author_id)
    else:
        outcome = catalog.author_delete_form(author_id)
    if outcome.missing or outcome.deleted:
        if outcome.deleted:
            flash('Author deleted.', 'success')
        return redirect(url_for('catalog.author_list'))
    return render_template('author_delete.html', title='Delete Author', outcome=outcome)


# Books

@bp.get('/books')
def book_list():
    return render_template('book_list.html', title='Book List', book_list=catalog.list_books())


@bp.get('/book/<int:book_id>')
def book_detail(book_id: int):
    payload = catalog.book_detail(book_id)
    return render_template('book_detail.html', title=payload['book'].title, **payload)


@bp.route('/book/create', methods=['GET', 'POST'])
def book_create():
    if request.method == 'POST':
        outcome = catalog.create_book(request.form)
        if outcome.ok:
            flash('Book created.', 'success')
            return redirect(record_url(outcome.record))
    else:
        outcome = catalog.book_create_form()
    return render_template('book_form.html', title='Create Book', outcome=outcome)


@bp.route('/book/<int:book_id>/update', methods=['GET', 'POST'])
def book_update(book_id: int):
    if request.method == 'POST':
        outcome = catalog.update_book(book_id, request.form)
        if outcome.ok:
            flash('Book updated.', 'success')
            return redirect(record_url(outcome.record))
    else:
        outcome = catalog.book_update_form(book_id)
    return render_template('book_form.html', title='Update Book', outcome=outcome)


@bp.route('/book/<int:book_id>/delete', methods=['GET', 'POST'])
def book_delete(book_id: int):
    if request.method == 'POST':
        outcome = catalog.delete_book(book_id)
    else:
        outcome = catalog.book_delete_form(book_id)
    if outcome.missing or outcome.deleted:
        if outcome.deleted:
            flash('Book deleted.', 'success')
        return redirect(url_for('catalog.book_list'))
    return render_template('book_delete.html', title='Delete Book', outcome=outcome)


# Genres

@bp.get('/genres')
def genre_list():
    return render_template('genre_list.html', title='Genre List', genre_list=catalog.list_genres())


@bp.get('/genre/<int:genre_id>')
def genre_detail(genre_id: int):
    return render_template('genre_detail.html', title='Genre Detail', **catalog.genre_detail(genre_id))


@bp.route('/genre/create', methods=['GET', 'POST'])
def genre_create():
    if request.method == 'POST':
        outcome = catalog.create_genre(request.form)
        if outcome.ok:
            return redirect(record_url(outcome.record))
    else:
        outcome = catalog.genre_create_form()
    return render_template('genre_form.html', title='Create Genre', outcome=outcome)


@bp.route('/genre/<int:genre_id>/update', methods=['GET', 'POST'])
def genre_update(genre_id: int):
    if request.method == 'POST':
        outcome = catalog.update_genre(genre_id, request.form)
        if outcome.ok:
            flash('Genre updated.', 'success')
            return redirect(record_url(outcome.record))
    else:
        outcome = catalog.genre_update_form(genre_id)
    return render_template('genre_form.html', title='Update Genre', outcome=outcome)


@bp.route('/genre/<int:genre_id>/delete', methods=['GET', 'POST'])
def genre_delete(genre_id: int):
    if request.method == 'POST':
        outcome = catalog.delete_genre(genre_id)
    else:
        outcome = catalog.genre_delete_form(genre_id)
    if outcome.missing or outcome.deleted:
        if outcome.deleted:
            flash('Genre deleted.', 'success')
        return redirect(url_for('catalog.genre_list'))
    return render_template('genre_delete.html', title='Delete Genre', outcome=outcome)


# Book copies

@bp.get('/bookinstances')
def bookinstance_list():
    return render_template('bookinstance_list.html', title='Book Instance List',
                           bookinstance_list=catalog.list_bookinstances())


@bp.get('/bookinstance/<int:instance_id>')
def bookinstance_detail(instance_id: int):
    instance = catalog.bookinstance_detail(instance_id)
    return render_template('bookinstance_detail.html', title=f'Copy: {instance.book.title}',
                           bookinstance=instance)


@bp.route('/bookinstance/create', methods=['GET', 'POST'])
def bookinstance_create():
    if request.method == 'POST':
        outcome = catalog.create_bookinstance(request.form)
        if outcome.ok:
            flash('Copy created.', 'success')
            return redirect(record_url(outcome.record))
    else:
        outcome = catalog.bookinstance_create_form()
    return render_template('bookinstance_form.html', title='Create Book Instance', outcome=outcome,
                           statuses=LOAN_STATUSES)


@bp.route('/bookinstance/<int:instance_id>/update', methods=['GET', 'POST'])
def bookinstance_update(instance_id: int):
    if request.method == 'POST':
        outcome = catalog.update_bookinstance(instance_id, request.form)
        if outcome.ok:
            flash('Copy updated.', 'success')
            return redirect(record_url(outcome.record))
    else:
        outcome = catalog.bookinstance_update_form(instance_id)
    return render_template('bookinstance_form.html', title='Update Book Instance', outcome=outcome,
                           statuses=LOAN_STATUSES)


@bp.route('/bookinstance/<int:instance_id>/delete', methods=['GET', 'POST'])
def bookinstance_delete(instance_id: int):
    if request.method == 'POST':
        catalog.delete_bookinstance(instance_id)
        flash('Copy deleted.', 'success')
        return redirect(url_for('catalog.bookinstance_list'))
    outcome = catalog.bookinstance_delete_form(instance_id)
    return render_template('bookinstance_delete.html', title='Delete Book Instance', outcome=outcome)


# Built per call so each test run can point it at its own database.
def create_app(test_config=None):
    app = Flask(__name__)

    db_path = os.path.join(basedir, 'data', 'library.sqlite')
    app.config['SQLALCHEMY_DATABASE_URI'] = os.environ.get(
        'DATABASE_URL', 'sqlite:///' + db_path.replace('\\', '/'))
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev-secret')
    app.config['CATALOG_READ_WORKERS'] = int(os.environ.get('CATALOG_READ_WORKERS', 4))
    app.config['LOG_LEVEL'] = os.environ.get('LOG_LEVEL', 'INFO')
    if test_config is not None:
        app.config.from_mapping(test_config)

    logging.basicConfig(format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    logging.getLogger().setLevel(app.config['LOG_LEVEL'])

    if app.config['SQLALCHEMY_DATABASE_URI'] == 'sqlite:///' + db_path.replace('\\', '/'):
        os.makedirs(os.path.dirname(db_path), exist_ok=True)

    db.init_app(app)
    app.register_blueprint(bp)

    app.add_template_filter(author_name)
    app.add_template_filter(author_lifespan, 'lifespan')
    app.add_template_filter(record_url, 'url')

    @app.get('/')
    def home():
        return redirect(url_for('catalog.index'))

    @app.errorhandler(RecordNotFound)
    def record_not_found(err):
        return render_template('error.html', title='Not Found', message=str(err)), 404

    @app.errorhandler(404)
    def page_not_found(err):
        return render_template('error.html', title='Not Found', message='Page not found'), 404

    @app.errorhandler(SQLAlchemyError)
    def store_error(err):
        logger.error("Store error while handling %s %s: %s", request.method, request.path, err)
        return render_template('error.html', title='Error', message='The catalog could not be reached.'), 500

    @app.cli.command('init-db')
    def init_db():
        """Create the catalog tables."""
        db.create_all()
        click.echo('Initialized the catalog database.')

    return app
