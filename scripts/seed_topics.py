import sys
from pathlib import Path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path: sys.path.insert(0, str(ROOT))

from sqlalchemy import select
from app.config import settings
from app.database import SessionLocal, init_db
from app.models import Topic, User

TOPICS = [
    "Front-End",
    "Back-End",
    "DevOps",
    "General Software Engineering",
    "Databases",
]


def ensure_default_user(db):
    user = db.get(User, settings.DEFAULT_USER_ID)
    if not user:
        db.add(User(id=settings.DEFAULT_USER_ID, username="default_user"))
        db.commit()


def upsert_topic(db, name):
    row = db.execute(select(Topic).where(Topic.name == name)).scalar_one_or_none()
    if not row:
        db.add(Topic(name=name))
        db.commit()


def main():
    init_db()
    db = SessionLocal()
    try:
        ensure_default_user(db)
        for name in TOPICS:
            upsert_topic(db, name)
        print("Seed OK")
    finally:
        db.close()


if __name__ == "__main__":
    main()
