import sqlite3
import secrets
from datetime import datetime
from typing import Any, Optional
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event, func, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from errors import PostNotFound
from sanitize import sanitize

db = SQLAlchemy()

TIMESTAMP_FORMAT : str = '%Y-%m-%d %H:%M:%S'
# Largest value an SQLite INTEGER primary key can hold.
MAX_ROW_ID : int = 2**63 - 1


@event.listens_for(Engine, 'connect')
def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    # SQLite ignores FOREIGN KEY clauses unless enabled per connection.
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()


class SerializerMixin:
    # Columns never sent back to clients.
    private_columns : tuple[str, ...] = ('delete_password',)

    def to_dict(self) -> dict[str, Any]:
        row : dict[str, Any] = {}
        for column in self.__table__.columns:
            if column.name in self.private_columns:
                continue
            value : Any = getattr(self, column.name)
            if isinstance(value, datetime):
                value = value.strftime(TIMESTAMP_FORMAT)
            row[column.name] = value
        return row


class Post(SerializerMixin, db.Model):
    __tablename__ = 'posts'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    title = db.Column(db.Text, nullable=False)
    category = db.Column(db.Text, nullable=False)
    cover_image = db.Column(db.Text, nullable=True)
    excerpt = db.Column(db.Text, nullable=False)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow)
    delete_password = db.Column(db.Text, nullable=False)

    comments = db.relationship(
        'Comment',
        backref='post',
        cascade='all, delete-orphan',
        passive_deletes=True,
    )


class Comment(SerializerMixin, db.Model):
    __tablename__ = 'comments'

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    post_id = db.Column(db.Integer, db.ForeignKey('posts.id', ondelete='CASCADE'), nullable=False)
    author = db.Column(db.Text, nullable=False)
    email = db.Column(db.Text, nullable=True)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    delete_password = db.Column(db.Text, nullable=False)


def tables_exist() -> bool:
    return inspect(db.engine).has_table(Post.__tablename__)


def init_db() -> None:
    '''Create the posts and comments tables if they are missing.

    Must run inside an application context. Safe to call repeatedly.
    '''
    db.create_all()


def list_posts() -> list[Post]:
    return Post.query.order_by(Post.created_at.desc(), Post.id.desc()).all()


def valid_row_id(row_id: int) -> bool:
    return 0 <= row_id <= MAX_ROW_ID


def get_post(post_id: int) -> Optional[Post]:
    if not valid_row_id(post_id):
        return None
    return db.session.get(Post, post_id)


def create_post(fields: dict[str, str]) -> Post:
    post : Post = Post(
        title=fields['title'],
        category=fields['category'],
        excerpt=fields['excerpt'],
        content=fields['content'],
        delete_password=fields['delete_password'],
    )
    db.session.add(post)
    db.session.commit()
    return post


def category_counts() -> list[dict[str, Any]]:
    rows = (
        db.session.query(Post.category, func.count(Post.id))
        .group_by(Post.category)
        .order_by(Post.category)
        .all()
    )
    return [{'category': category, 'count': count} for category, count in rows]


def list_comments(post_id: int) -> list[Comment]:
    if not valid_row_id(post_id):
        return []
    return (
        Comment.query.filter_by(post_id=post_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
        .all()
    )


def get_comment(comment_id: int) -> Optional[Comment]:
    if not valid_row_id(comment_id):
        return None
    return db.session.get(Comment, comment_id)


def create_comment(post_id: int, fields: dict[str, Optional[str]]) -> Comment:
    '''Insert a comment, relying on the foreign key to reject unknown posts.'''
    if not valid_row_id(post_id):
        raise PostNotFound()
    comment : Comment = Comment(
        post_id=post_id,
        author=fields['author'],
        email=fields.get('email') or None,
        content=fields['content'],
        delete_password=fields.get('delete_password') or '',
    )
    db.session.add(comment)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        if 'foreign key' in str(e.orig).lower():
            raise PostNotFound() from e
        raise
    return comment


def delete_row(row: db.Model) -> None:
    db.session.delete(row)
    db.session.commit()


def check_delete_password(row: Any, submitted: Any) -> bool:
    '''Compare a submitted delete password against the stored one.

    The submitted value goes through the same sanitizer as the stored value
    did at write time, so passwords containing markup characters still match.
    '''
    candidate : Optional[str] = sanitize(submitted)
    if candidate is None or row.delete_password is None:
        return False
    return secrets.compare_digest(candidate.encode('utf-8'), row.delete_password.encode('utf-8'))
