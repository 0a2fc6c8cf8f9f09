from datetime import date, datetime, timedelta, timezone

import pytest

from clinic_queue.core.errors import ClinicConfigurationError
from clinic_queue.models.appointment import AppointmentStatus
from clinic_queue.models.clinic_settings import ClinicSettings
from clinic_queue.services.clinic_settings_service import load_clinic_config, parse_working_windows
from clinic_queue.services.slot_service import SlotService, generate_day_slots, within_booking_window

from .factories import (
    CLINIC_TZ, at_local, local_tomorrow, make_appointment, make_config,
    make_doctor, make_profile, parse_instant
)

# Fixed clinic-local "now": 2030-01-06 10:05 Singapore time
DAY = date(2030, 1, 6)
NOW = datetime(2030, 1, 6, 10, 5, tzinfo=CLINIC_TZ)
NEXT_DAY = DAY + timedelta(days=1)


class TestSlotGeneration:

    def test_morning_window_fifteen_minutes(self):
        """09:00-12:00 in 15 minute steps gives 09:00 .. 11:45."""
        config = make_config(windows=("09:00-12:00",))
        slots = generate_day_slots(DAY, config)

        labels = [slot.strftime("%H:%M") for slot in slots]
        assert len(labels) == 12
        assert labels[0] == "09:00"
        assert labels[-1] == "11:45"

    def test_slots_are_ascending_evenly_spaced_and_inside_windows(self):
        """Default windows: ascending, exactly one duration apart within a window, no duplicates."""
        config = make_config()
        slots = generate_day_slots(DAY, config)

        assert len(slots) == 24
        assert slots == sorted(slots)
        assert len(set(slots)) == len(slots)

        for start in slots:
            local = start.timetz()
            inside = any(
                opens <= local.replace(tzinfo=None)
                and start + timedelta(minutes=15) <= datetime.combine(DAY, closes, tzinfo=CLINIC_TZ)
                for opens, closes in config.working_windows
            )
            assert inside

        morning = [s for s in slots if s.hour < 12]
        gaps = {b - a for a, b in zip(morning, morning[1:])}
        assert gaps == {timedelta(minutes=15)}

    def test_slot_must_fit_before_window_closes(self):
        """With 25 minute slots the last morning slot starts at 11:30."""
        config = make_config(slot_duration_min=25, windows=("09:00-12:00",))
        labels = [slot.strftime("%H:%M") for slot in generate_day_slots(DAY, config)]

        assert labels == ["09:00", "09:25", "09:50", "10:15", "10:40", "11:05", "11:30"]

    def test_parse_working_windows_rejects_bad_values(self):
        """Malformed, inverted or overlapping windows are configuration errors."""
        with pytest.raises(ClinicConfigurationError):
            parse_working_windows(["9am-noon"])
        with pytest.raises(ClinicConfigurationError):
            parse_working_windows(["12:00-09:00"])
        with pytest.raises(ClinicConfigurationError):
            parse_working_windows(["09:00-12:00", "11:00-13:00"])


class TestBookingWindow:

    def test_window_bounds(self):
        """Today through today + booking_window_days, inclusive."""
        config = make_config(booking_window_days=7)

        assert within_booking_window(DAY, config, NOW)
        assert within_booking_window(DAY + timedelta(days=7), config, NOW)
        assert not within_booking_window(DAY - timedelta(days=1), config, NOW)
        assert not within_booking_window(DAY + timedelta(days=8), config, NOW)

    def test_today_follows_clinic_timezone(self):
        """At 23:30 UTC it is already the next day in Singapore."""
        config = make_config(booking_window_days=0)
        late_utc = datetime(2030, 1, 5, 23, 30, tzinfo=timezone.utc)

        assert within_booking_window(DAY, config, late_utc)
        assert not within_booking_window(date(2030, 1, 5), config, late_utc)


class TestSlotService:

    def test_all_slots_free(self, db_session):
        """No appointments: every slot of the day is offered."""
        doctor = make_doctor(db_session)
        slots = SlotService(db_session, make_config()).available_slots(doctor.id, NEXT_DAY, now=NOW)

        assert len(slots) == 24
        assert slots[0].label == "09:00"
        assert slots[0].instant == at_local(NEXT_DAY, 9, 0)
        assert slots[-1].label == "16:45"

    def test_booked_slot_is_excluded(self, db_session):
        """An active appointment removes exactly its slot."""
        doctor = make_doctor(db_session)
        profile = make_profile(db_session, "patient-1")
        make_appointment(db_session, doctor, profile, at_local(NEXT_DAY, 9, 0))

        slots = SlotService(db_session, make_config()).available_slots(doctor.id, NEXT_DAY, now=NOW)
        labels = [slot.label for slot in slots]

        assert "09:00" not in labels
        assert "09:15" in labels
        assert len(labels) == 23

    def test_finished_appointments_do_not_block(self, db_session):
        """Completed and no-show appointments free their slot."""
        doctor = make_doctor(db_session)
        profile = make_profile(db_session, "patient-1")
        make_appointment(db_session, doctor, profile, at_local(NEXT_DAY, 9, 0),
                         status=AppointmentStatus.NO_SHOW)
        make_appointment(db_session, doctor, profile, at_local(NEXT_DAY, 9, 15),
                         status=AppointmentStatus.COMPLETED)

        slots = SlotService(db_session, make_config()).available_slots(doctor.id, NEXT_DAY, now=NOW)

        assert len(slots) == 24

    def test_other_doctor_does_not_block(self, db_session):
        """Occupancy is per doctor."""
        doctor = make_doctor(db_session, name="Dr. A")
        other = make_doctor(db_session, name="Dr. B")
        profile = make_profile(db_session, "patient-1")
        make_appointment(db_session, other, profile, at_local(NEXT_DAY, 9, 0))

        slots = SlotService(db_session, make_config()).available_slots(doctor.id, NEXT_DAY, now=NOW)

        assert slots[0].label == "09:00"

    def test_exact_match_only(self, db_session):
        """An off-grid appointment does not knock out neighbouring slots."""
        doctor = make_doctor(db_session)
        profile = make_profile(db_session, "patient-1")
        make_appointment(db_session, doctor, profile, at_local(NEXT_DAY, 9, 7))

        labels = [s.label for s in
                  SlotService(db_session, make_config()).available_slots(doctor.id, NEXT_DAY, now=NOW)]

        assert "09:00" in labels
        assert "09:15" in labels

    def test_outside_booking_window_is_empty(self, db_session):
        """Past days and days beyond the window have no slots."""
        doctor = make_doctor(db_session)
        service = SlotService(db_session, make_config(booking_window_days=7))

        assert service.available_slots(doctor.id, DAY - timedelta(days=1), now=NOW) == []
        assert service.available_slots(doctor.id, DAY + timedelta(days=8), now=NOW) == []
        assert service.available_slots(doctor.id, DAY + timedelta(days=7), now=NOW) != []

    def test_started_slots_today_are_hidden(self, db_session):
        """At 10:05 the first slot still offered today is 10:15."""
        doctor = make_doctor(db_session)
        slots = SlotService(db_session, make_config()).available_slots(doctor.id, DAY, now=NOW)

        assert slots[0].label == "10:15"
        assert len(slots) == 19

    def test_inactive_or_unknown_doctor_has_no_slots(self, db_session):
        """Only active doctors can be booked."""
        inactive = make_doctor(db_session, is_active=False)
        service = SlotService(db_session, make_config())

        assert service.available_slots(inactive.id, NEXT_DAY, now=NOW) == []
        assert service.available_slots("no-such-doctor", NEXT_DAY, now=NOW) == []

    def test_is_bookable(self, db_session):
        """Grid instants inside the window are bookable, anything else is not."""
        service = SlotService(db_session, make_config())

        assert service.is_bookable(at_local(NEXT_DAY, 9, 0), now=NOW)
        assert service.is_bookable(at_local(NEXT_DAY, 16, 45), now=NOW)
        assert not service.is_bookable(at_local(NEXT_DAY, 9, 7), now=NOW)
        assert not service.is_bookable(at_local(NEXT_DAY, 12, 0), now=NOW)
        assert not service.is_bookable(at_local(DAY, 9, 0), now=NOW)
        assert not service.is_bookable(at_local(DAY + timedelta(days=8), 9, 0), now=NOW)


class TestClinicSettings:

    def test_missing_settings_row_is_an_error(self, db_session):
        """No silent defaults when the settings row is absent."""
        db_session.query(ClinicSettings).delete()
        db_session.commit()

        with pytest.raises(ClinicConfigurationError):
            load_clinic_config(db_session)

    def test_invalid_settings_are_rejected(self, db_session):
        """Zero-length slots and unknown timezones are refused."""
        row = db_session.query(ClinicSettings).first()
        row.slot_duration_min = 0
        db_session.commit()
        with pytest.raises(ClinicConfigurationError):
            load_clinic_config(db_session)

        row.slot_duration_min = 15
        row.timezone = "Mars/Olympus_Mons"
        db_session.commit()
        with pytest.raises(ClinicConfigurationError):
            load_clinic_config(db_session)

    def test_loads_seeded_settings(self, db_session):
        """The seeded row is returned with the configured working windows."""
        config = load_clinic_config(db_session)

        assert config.slot_duration_min == 15
        assert config.booking_window_days == 7
        assert config.timezone == "Asia/Singapore"
        assert len(config.working_windows) == 2


class TestSlotsEndpoint:

    def test_list_slots(self, client, db_session):
        """Tomorrow's slots are returned as instant + local label."""
        doctor = make_doctor(db_session)
        tomorrow = local_tomorrow()

        response = client.get("/api/v1/slots", params={"doctor_id": doctor.id, "date": tomorrow.isoformat()})
        assert response.status_code == 200

        slots = response.json()["slots"]
        assert len(slots) == 24
        assert slots[0]["label"] == "09:00"
        assert parse_instant(slots[0]["instant"]) == at_local(tomorrow, 9, 0)

    def test_missing_params(self, client):
        """doctor_id and date are both required."""
        response = client.get("/api/v1/slots", params={"date": "2030-01-06"})
        assert response.status_code == 400
        assert "required" in response.json()["message"]

    def test_bad_date(self, client, db_session):
        """Dates must be YYYY-MM-DD."""
        doctor = make_doctor(db_session)
        response = client.get("/api/v1/slots", params={"doctor_id": doctor.id, "date": "06/01/2030"})
        assert response.status_code == 400

    def test_missing_settings_is_server_error(self, client, db_session):
        """Settings removed after startup surface as a configuration error."""
        doctor = make_doctor(db_session)
        db_session.query(ClinicSettings).delete()
        db_session.commit()

        response = client.get("/api/v1/slots", params={"doctor_id": doctor.id, "date": local_tomorrow().isoformat()})
        assert response.status_code == 500
        assert "configuration" in response.json()["message"]
