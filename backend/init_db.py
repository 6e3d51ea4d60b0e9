"""
Database initialization script
Run this to create tables and seed a demo store, survey, reviews and AI settings
"""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from reviewhub.core.database import engine, Base, SessionLocal
from reviewhub.models import AISettings, Review, Store, Survey

DEMO_USER_ID = "demo-user"


def init_db():
    """Initialize database with tables"""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("✓ Tables created successfully")


def seed_data():
    """Seed demo data for the dashboard and the public survey page"""
    db = SessionLocal()

    try:
        print("\nSeeding demo data...")

        store = db.query(Store).filter(Store.user_id == DEMO_USER_ID).first()
        if not store:
            store = Store(
                user_id=DEMO_USER_ID,
                display_name="カフェ・サンプル",
                category="カフェ",
                address="東京都渋谷区1-2-3",
                google_review_url="https://search.google.com/local/writereview?placeid=DEMO_PLACE_ID",
            )
            db.add(store)
            db.flush()
            print(f"✓ Demo store created ({store.display_name})")

        survey = db.query(Survey).filter(Survey.store_id == store.id).first()
        if not survey:
            survey = Survey(
                user_id=DEMO_USER_ID,
                store_id=store.id,
                title="ご来店アンケート",
                description="今後のサービス向上のため、ご意見をお聞かせください。",
                questions=[
                    {"id": 1, "type": "rating", "question": "総合的な満足度", "required": True, "scale": 5},
                    {"id": 2, "type": "rating", "question": "スタッフの対応", "required": True, "scale": 5},
                    {"id": 3, "type": "choice", "question": "ご来店のきっかけ", "required": False,
                     "options": ["Google検索", "SNS", "知人の紹介", "通りがかり"]},
                    {"id": 4, "type": "text", "question": "その他ご意見", "required": False},
                ],
            )
            db.add(survey)
            db.flush()
            print(f"✓ Demo survey created (public page: /s/{survey.id})")

        if not db.query(Review).filter(Review.store_id == store.id).first():
            now = datetime.now(timezone.utc)
            samples = [
                (5, "コーヒーがとても美味しかったです。また来ます！", "山田 花子", 180),
                (3, "雰囲気は良いですが、少し待ち時間が長かったです。", "佐藤 太郎", 120),
                (1, "注文が間違っていました。", "鈴木 一郎", 90),
                (4, "", "田中 美咲", 30),
            ]
            for rating, text, author, minutes_ago in samples:
                db.add(Review(
                    user_id=DEMO_USER_ID,
                    store_id=store.id,
                    rating=rating,
                    text=text,
                    author_name=author,
                    created_at=now - timedelta(minutes=minutes_ago),
                ))
            print(f"✓ {len(samples)} demo reviews created")

        if not db.query(AISettings).filter(AISettings.user_id == DEMO_USER_ID).first():
            db.add(AISettings(user_id=DEMO_USER_ID, auto_reply_enabled=True))
            print("✓ Default AI settings created (auto-reply enabled)")

        db.commit()
        print("\n✓ Database seeded successfully!")

    except Exception as e:
        print(f"\n✗ Error seeding data: {e}")
        db.rollback()
    finally:
        db.close()


if __name__ == "__main__":
    print("=" * 60)
    print("ReviewHub - Database Initialization")
    print("=" * 60)

    init_db()
    seed_data()

    print("\n" + "=" * 60)
    print("Initialization complete!")
    print("=" * 60)
    print("\nYou can now access:")
    print("  - API: http://localhost:8000")
    print("  - API Docs: http://localhost:8000/docs")
    print(f"\nDemo requests use the header  X-User-Id: {DEMO_USER_ID}")
    print("=" * 60)
