# init_db.py
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from database import Base, engine
import models  # noqa: F401  registers the tables on Base.metadata


def create_database():
    try:
        existing = set(inspect(engine).get_table_names())
        Base.metadata.create_all(bind=engine)

        for table in Base.metadata.sorted_tables:
            if table.name in existing:
                print(f"Table '{table.name}' already exists.")
            else:
                print(f"Table '{table.name}' created successfully.")

        print(f"Database ready at {engine.url.render_as_string(hide_password=True)}")
        return True

    except SQLAlchemyError as e:
        print(f"Error: {e}")
        return False


if __name__ == "__main__":
    create_database()
