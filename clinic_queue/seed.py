"""
Seed clinic settings, sample doctors and staff directory entries.
Run with: python -m clinic_queue.seed [--sample-doctors] [--staff USER_ID:ROLE ...]
"""
import argparse
import sys

from .core.database import SessionLocal, init_db
from .core.security import StaffRole
from .models.clinic_settings import ClinicSettings
from .models.doctor import Doctor
from .models.staff import StaffProfile

DEFAULT_SLOT_DURATION_MIN = 15
DEFAULT_BOOKING_WINDOW_DAYS = 7
DEFAULT_TIMEZONE = "Asia/Singapore"

SAMPLE_DOCTORS = [
    {"name": "Dr. Tan Wei Ming", "languages": ["en", "zh"]},
    {"name": "Dr. Nur Aisyah", "languages": ["en", "ms"]},
    {"name": "Dr. Priya Raman", "languages": ["en", "ta"]},
]

def seed_clinic_settings(db, slot_duration_min, booking_window_days, timezone):
    """Create or update the single clinic settings row."""
    row = db.query(ClinicSettings).order_by(ClinicSettings.id).first()
    if row is None:
        row = ClinicSettings()
        db.add(row)
    row.slot_duration_min = slot_duration_min
    row.booking_window_days = booking_window_days
    row.timezone = timezone
    db.commit()
    return row

def seed_sample_doctors(db):
    created = 0
    for doctor_data in SAMPLE_DOCTORS:
        exists = db.query(Doctor).filter(Doctor.name == doctor_data["name"]).first()
        if exists:
            continue
        db.add(Doctor(is_active=True, **doctor_data))
        created += 1
    db.commit()
    return created

def seed_staff(db, user_id, role):
    staff = db.query(StaffProfile).filter(StaffProfile.user_id == user_id).first()
    if staff is None:
        staff = StaffProfile(user_id=user_id)
        db.add(staff)
    staff.role = role
    db.commit()
    return staff

def parse_staff_entry(entry):
    user_id, _, role = entry.partition(":")
    if not user_id or not role:
        raise argparse.ArgumentTypeError(f"expected USER_ID:ROLE, got {entry!r}")
    try:
        return user_id, StaffRole(role)
    except ValueError:
        roles = ", ".join(r.value for r in StaffRole)
        raise argparse.ArgumentTypeError(f"role must be one of {roles}")

def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed Clinic Queue data")
    parser.add_argument("--slot-duration", type=int, default=DEFAULT_SLOT_DURATION_MIN)
    parser.add_argument("--booking-window", type=int, default=DEFAULT_BOOKING_WINDOW_DAYS)
    parser.add_argument("--timezone", default=DEFAULT_TIMEZONE)
    parser.add_argument("--sample-doctors", action="store_true")
    parser.add_argument("--staff", type=parse_staff_entry, action="append", default=[])
    args = parser.parse_args(argv)

    init_db()
    db = SessionLocal()
    try:
        row = seed_clinic_settings(db, args.slot_duration, args.booking_window, args.timezone)
        print(f"Clinic settings: {row.slot_duration_min} min slots, "
              f"{row.booking_window_days} day window, {row.timezone}")

        if args.sample_doctors:
            print(f"Sample doctors created: {seed_sample_doctors(db)}")

        for user_id, role in args.staff:
            seed_staff(db, user_id, role)
            print(f"Staff {user_id} -> {role.value}")
    finally:
        db.close()

    return 0

if __name__ == "__main__":
    sys.exit(main())
