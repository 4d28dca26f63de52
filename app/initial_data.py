from datetime import date, timedelta
import logging

from app.core.database import Base, SessionLocal, engine
from app.crud.store import SqlRecordStore
from app.core.config import settings
from app.services.workflow import WorkflowEngine
from app import models  # noqa: F401

logger = logging.getLogger(__name__)

def init_db() -> None:
    """Create all registry tables"""
    Base.metadata.create_all(bind=engine)
    logger.info("Registry tables are in place")

def create_sample_data() -> None:
    """Upload sample hospital notifications for trying the parent flow (optional)"""
    db = SessionLocal()

    try:
        workflow = WorkflowEngine(SqlRecordStore(db), max_id_attempts=settings.ID_MAX_ATTEMPTS)

        if workflow.store.list_hospital_notifications():
            print("✅ Hospital notifications already exist in the database")
            return

        born = date.today() - timedelta(days=2)
        samples = [
            {
                "child_name": "Baby Boy Sharma",
                "gender": "Male",
                "date_of_birth": born,
                "time_of_birth": "08:45",
                "weight": 3.2,
                "attending_doctor": "Dr. Meera Iyer",
                "hospital_name": "City General Hospital",
                "hospital_reg_no": "CGH2024001",
                "delivery_type": "Normal",
            },
            {
                "child_name": "Baby Girl Rao",
                "gender": "Female",
                "date_of_birth": born,
                "time_of_birth": "14:10",
                "weight": 2.9,
                "attending_doctor": "Dr. Arjun Menon",
                "hospital_name": "City General Hospital",
                "hospital_reg_no": "CGH2024001",
                "delivery_type": "C-Section",
            },
        ]

        for sample in samples:
            notification = workflow.register_notification(sample).unwrap()
            print(f"✅ Sample notification {notification.hospital_id} for {notification.child_name}")

    except Exception as e:
        print(f"❌ Error creating sample data: {e}")
        raise
    finally:
        db.close()

if __name__ == "__main__":
    logging.basicConfig(level=settings.LOG_LEVEL)
    print("🚀 Initializing database...")
    init_db()

    # Uncomment next line if you want sample data
    # create_sample_data()

    print("🎉 Database initialization completed!")
