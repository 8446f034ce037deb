"""
Database settings.

``DATABASE_URL`` wins when set (``postgres://`` or ``sqlite:///``), then the
``DB_*`` variables for PostgreSQL; without either, a local SQLite file is
used, which is also what the test suite runs against.
"""
import os
from pathlib import Path
from urllib.parse import unquote, urlparse

POSTGRES_SCHEMES = ('postgres', 'postgresql')


def get_database_config(base_dir: Path) -> dict:
    url = os.getenv('DATABASE_URL', '')
    if url:
        return parse_database_url(url)
    if os.getenv('DB_HOST'):
        return _postgres(
            name=os.getenv('DB_NAME', 'showcase'),
            user=os.getenv('DB_USER', 'postgres'),
            password=os.getenv('DB_PASSWORD', ''),
            host=os.getenv('DB_HOST'),
            port=os.getenv('DB_PORT', '5432'),
        )
    return {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': base_dir / 'db.sqlite3',
    }


def parse_database_url(url: str) -> dict:
    parsed = urlparse(url)
    if parsed.scheme == 'sqlite':
        return {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': parsed.path[1:] if parsed.path.startswith('//') else parsed.path.lstrip('/') or ':memory:',
        }
    if parsed.scheme not in POSTGRES_SCHEMES or not parsed.path.strip('/'):
        raise ValueError(f"Unsupported DATABASE_URL: {parsed.scheme}://{parsed.hostname or ''}")
    return _postgres(
        name=parsed.path.lstrip('/'),
        user=unquote(parsed.username or ''),
        password=unquote(parsed.password or ''),
        host=parsed.hostname or 'localhost',
        port=str(parsed.port or 5432),
    )


def _postgres(name: str, user: str, password: str, host: str, port: str) -> dict:
    config = {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': name,
        'USER': user,
        'PASSWORD': password,
        'HOST': host,
        'PORT': port,
        'CONN_MAX_AGE': int(os.getenv('DB_CONN_MAX_AGE', '60')),
    }
    if os.getenv('DB_SSLMODE'):
        config['OPTIONS'] = {'sslmode': os.getenv('DB_SSLMODE')}
    return config
