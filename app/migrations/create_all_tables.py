"""
Migration script to create every table, index and constraint

Creates the relational schema, the Mongo indexes and the Neo4j uniqueness
constraints, then optionally seeds an admin account. Roles cannot be changed
through the API, so this is the way to get the first admin:

    ADMIN_EMAIL=admin@example.com ADMIN_PASSWORD=secret123 \
        python -m app.migrations.create_all_tables
"""

import os

from sqlalchemy.orm import Session

from app.models.user import User, ROLE_ADMIN
from app.stores.context import StoreContext
from app.utils.security import hash_password


def seed_admin(db: Session, email: str, password: str, name: str = "Admin") -> User:
    """Create the admin account, or promote an existing user with that email"""
    email = email.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if user:
        user.role = ROLE_ADMIN
    else:
        user = User(email=email, password_hash=hash_password(password), name=name, role=ROLE_ADMIN)
        db.add(user)
    db.commit()
    db.refresh(user)
    return user


def create_tables():
    """Create all tables, indexes and constraints"""
    print("=" * 60)
    print("Creating schema in every store...")
    print("=" * 60)

    stores = StoreContext.from_env()
    try:
        stores.connect()
        stores.init_schema()
        print("\n✅ Schema created:")
        print("   - postgres: users, games, ratings")
        print("   - mongo:    comments, user_games (indexes)")
        print("   - neo4j:    Game.id, User.id (unique constraints)")

        admin_email = os.getenv("ADMIN_EMAIL")
        admin_password = os.getenv("ADMIN_PASSWORD")
        if admin_email and admin_password:
            db = stores.sessions()
            try:
                admin = seed_admin(db, admin_email, admin_password, os.getenv("ADMIN_NAME", "Admin"))
                print(f"\n✅ Admin account ready: {admin.email}")
            finally:
                db.close()
        print("=" * 60)
    except Exception as e:
        print(f"\n❌ Error creating schema: {e}")
        raise
    finally:
        stores.close()


if __name__ == "__main__":
    create_tables()
