from sqlalchemy import func, select

from tutorslot.db.session import SessionLocal
from tutorslot.models.catalog import ClassType, ClassTypeCompatibility
from tutorslot.models.class_definition import ClassDefinition, ScheduleMode
from tutorslot.models.class_override import ClassOverride
from tutorslot.models.status_log import ClassStatusLog

db = SessionLocal()
try:
    class_types = db.execute(select(ClassType).order_by(ClassType.code)).scalars().all()
    print(f"Class types: {', '.join(f'{item.code}({item.max_students})' for item in class_types) or 'None'}")

    rule_count = db.execute(select(func.count()).select_from(ClassTypeCompatibility)).scalar_one()
    print(f"Compatibility rules: {rule_count}")

    for mode in ScheduleMode:
        count = db.execute(
            select(func.count()).select_from(ClassDefinition).where(ClassDefinition.schedule_mode == mode)
        ).scalar_one()
        print(f"Classes ({mode.value}): {count}")

    override_count = db.execute(select(func.count()).select_from(ClassOverride)).scalar_one()
    print(f"Overrides: {override_count}")

    logs = db.execute(select(ClassStatusLog).order_by(ClassStatusLog.changed_at.desc()).limit(5)).scalars().all()
    print(f"Recent status changes: {len(logs)}")
    for log in logs:
        print(f"  - {log.class_id} -> {log.status.value} by {log.changed_by} ({log.reason})")
finally:
    db.close()
