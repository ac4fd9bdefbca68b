"""Migration / setup helper
Creates the schema directly from the models. Use `alembic upgrade head`
instead when the database is managed with migrations.
Run: python migrate.py
"""
from db import init_db, DATABASE_URL


def main():
    init_db()
    print(f"Database initialized ({DATABASE_URL})")


if __name__ == "__main__":
    main()
