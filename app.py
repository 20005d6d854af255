import logging
from typing import Any, Optional, Union
import click
from flask import Blueprint, Flask, Response, current_app, jsonify, request
from flask.cli import with_appcontext
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import MethodNotAllowed, NotFound
from assets import AssetError, AssetStore, DirectoryAssetStore, fetch_asset
from config import Config
from errors import BlogError, CommentNotFound, ConfigurationError, Forbidden, PostNotFound, ValidationError
from models import (
    db, Post, Comment, category_counts, check_delete_password, create_comment, create_post,
    delete_row, get_comment, get_post, init_db, list_comments, list_posts, tables_exist,
)
from sanitize import sanitize_fields

POST_FIELDS : tuple[str, ...] = ('title', 'category', 'excerpt', 'content', 'delete_password')
COMMENT_FIELDS : tuple[str, ...] = ('author', 'email', 'content', 'delete_password')
REQUIRED_COMMENT_FIELDS : tuple[str, ...] = ('author', 'content')

# Pages served from the asset store, keyed by URL path.
STATIC_PAGES : dict[str, str] = {
    '/': 'index.html',
    '/index.html': 'index.html',
    '/404.html': '404.html',
}
for _page in ('about', 'cert', 'new-post', 'post', 'posts', 'contact'):
    STATIC_PAGES[f'/{_page}'] = f'{_page}.html'
    STATIC_PAGES[f'/{_page}.html'] = f'{_page}.html'

pages = Blueprint('pages', __name__)
api = Blueprint('api', __name__, url_prefix='/api')


def get_asset_store() -> Optional[AssetStore]:
    return current_app.extensions.get('assets')


def json_response(status: int = 200, **body: Any) -> tuple[Response, int]:
    return jsonify(body), status


def json_body() -> dict:
    payload : Any = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object')
    return payload


# ---------------------------------------------------------------- pages

def serve_page(page: str) -> Union[Response, tuple[str, int]]:
    try:
        html : str = fetch_asset(get_asset_store(), page)
    except AssetError as e:
        current_app.logger.warning('Failed to load asset %s: %s', page, e)
        return Response(f'{page} failed to load: {e}', status=404, mimetype='text/plain')
    return Response(html, content_type='text/html; charset=UTF-8')


def _register_static_pages() -> None:
    for path, page in STATIC_PAGES.items():
        pages.add_url_rule(
            path,
            endpoint=path.strip('/').replace('.', '_') or 'index',
            view_func=lambda page=page: serve_page(page),
            methods=['GET'],
        )


_register_static_pages()


@pages.route('/post/<post_id>')
def post_page(post_id: str) -> Union[Response, tuple[str, int]]:
    return serve_page('post.html')


# ---------------------------------------------------------------- posts

@api.route('/posts', methods=['GET'])
def api_list_posts() -> tuple[Response, int]:
    return json_response(success=True, data=[post.to_dict() for post in list_posts()])


@api.route('/posts/<int:post_id>', methods=['GET'])
def api_get_post(post_id: int) -> tuple[Response, int]:
    post : Optional[Post] = get_post(post_id)
    if post is None:
        raise PostNotFound()
    return json_response(success=True, data=post.to_dict())


@api.route('/posts', methods=['POST'])
def api_create_post() -> tuple[Response, int]:
    fields : dict = sanitize_fields(json_body(), POST_FIELDS)
    missing : list[str] = [name for name in POST_FIELDS if not fields[name]]
    if missing:
        raise ValidationError(f'Missing required fields: {", ".join(missing)}')
    post : Post = create_post(fields)
    current_app.logger.info('Created post %s in category %s', post.id, post.category)
    return json_response(success=True, message='Created', data={'id': post.id})


@api.route('/posts/<int:post_id>', methods=['DELETE'])
def api_delete_post(post_id: int) -> tuple[Response, int]:
    submitted : Any = json_body().get('deletePassword')
    post : Optional[Post] = get_post(post_id)
    if post is None:
        raise PostNotFound()
    if not check_delete_password(post, submitted):
        current_app.logger.warning('Rejected delete of post %s: wrong password', post_id)
        raise Forbidden()
    delete_row(post)
    current_app.logger.info('Deleted post %s', post_id)
    return json_response(success=True, message='Deleted')


@api.route('/categories', methods=['GET'])
def api_categories() -> tuple[Response, int]:
    return json_response(success=True, data=category_counts())


# ---------------------------------------------------------------- comments

@api.route('/posts/<int:post_id>/comments', methods=['GET'])
def api_list_comments(post_id: int) -> tuple[Response, int]:
    return json_response(success=True, data=[comment.to_dict() for comment in list_comments(post_id)])


@api.route('/posts/<int:post_id>/comments', methods=['POST'])
def api_create_comment(post_id: int) -> tuple[Response, int]:
    fields : dict = sanitize_fields(json_body(), COMMENT_FIELDS)
    missing : list[str] = [name for name in REQUIRED_COMMENT_FIELDS if not fields[name]]
    if missing:
        raise ValidationError(f'Missing required fields: {", ".join(missing)}')
    comment : Comment = create_comment(post_id, fields)
    current_app.logger.info('Added comment %s to post %s', comment.id, post_id)
    return json_response(success=True, message='Comment added', data={'id': comment.id})


@api.route('/comments/<int:comment_id>', methods=['DELETE'])
def api_delete_comment(comment_id: int) -> tuple[Response, int]:
    submitted : Any = json_body().get('deletePassword')
    comment : Optional[Comment] = get_comment(comment_id)
    if comment is None:
        raise CommentNotFound()
    if not check_delete_password(comment, submitted):
        current_app.logger.warning('Rejected delete of comment %s: wrong password', comment_id)
        raise Forbidden()
    delete_row(comment)
    current_app.logger.info('Deleted comment %s', comment_id)
    return json_response(success=True, message='Deleted')


@api.errorhandler(BlogError)
def api_error(e: BlogError) -> tuple[Response, int]:
    return json_response(e.status_code, success=False, message=e.message)


@api.errorhandler(SQLAlchemyError)
def api_database_error(e: SQLAlchemyError) -> tuple[Response, int]:
    db.session.rollback()
    current_app.logger.exception('Database error: %s', e)
    return json_response(500, success=False, message=str(e))


# ---------------------------------------------------------------- app

def cors_headers() -> dict[str, str]:
    return {
        'Access-Control-Allow-Origin': current_app.config['CORS_ALLOW_ORIGIN'],
        'Access-Control-Allow-Methods': 'GET,HEAD,POST,OPTIONS,DELETE',
        'Access-Control-Allow-Headers': 'Content-Type',
        'Access-Control-Max-Age': '86400',
    }


def preflight() -> Optional[Response]:
    if request.method == 'OPTIONS':
        return Response(status=204)
    return None


def add_cors_headers(response: Response) -> Response:
    response.headers.update(cors_headers())
    return response


def page_not_found(_error: Union[NotFound, MethodNotAllowed]) -> Response:
    return Response(f'Page not found: {request.path}', status=404, mimetype='text/plain')


@click.command('init-db')
@with_appcontext
def init_db_command() -> None:
    '''Create the blog tables if they do not exist.'''
    existed : bool = tables_exist()
    init_db()
    click.echo('Tables already present.' if existed else 'Created posts and comments tables.')


def create_app(config: Optional[Union[type, object]] = None, assets: Optional[AssetStore] = None) -> Flask:
    app : Flask = Flask(__name__)
    app.config.from_object(config or Config)
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    if not app.config.get('SQLALCHEMY_DATABASE_URI'):
        raise ConfigurationError('Database is not bound, check DATABASE_URL')
    db.init_app(app)

    if assets is None and app.config.get('ASSETS_DIR'):
        assets = DirectoryAssetStore(app.config['ASSETS_DIR'])
    app.extensions['assets'] = assets

    with app.app_context():
        init_db()
        app.logger.info('Database schema ready (%s)', app.config['SQLALCHEMY_DATABASE_URI'])

    app.register_blueprint(pages)
    app.register_blueprint(api)
    app.before_request(preflight)
    app.after_request(add_cors_headers)
    app.register_error_handler(NotFound, page_not_found)
    app.register_error_handler(MethodNotAllowed, page_not_found)
    app.cli.add_command(init_db_command)
    return app


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    port : int = 5000
    app : Flask = create_app()
    app.logger.info('Blog server running on port %s', port)
    app.run(host='0.0.0.0', port=port)
