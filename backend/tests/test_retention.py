"""
Unit tests per la finestra di conservazione del cestino.
"""

import datetime

from app.services.retention import days_remaining, is_purge_eligible, retention_deadline

NOW = datetime.datetime(2025, 10, 15, 12, 0, tzinfo=datetime.timezone.utc)


class TestDaysRemaining:
    """Tests per days_remaining con finestra di 30 giorni."""

    def test_deleted_29_days_ago(self):
        """Test eliminato 29 giorni fa: manca 1 giorno."""
        assert days_remaining(NOW - datetime.timedelta(days=29), NOW, 30) == 1

    def test_deleted_31_days_ago(self):
        """Test eliminato 31 giorni fa: finestra scaduta."""
        assert days_remaining(NOW - datetime.timedelta(days=31), NOW, 30) <= 0

    def test_deleted_now(self):
        assert days_remaining(NOW, NOW, 30) == 30

    def test_partial_day_rounds_up(self):
        """Test una frazione di giorno residua conta come giorno intero."""
        deleted_at = NOW - datetime.timedelta(days=29, hours=23)
        assert days_remaining(deleted_at, NOW, 30) == 1

    def test_exact_deadline_is_zero(self):
        assert days_remaining(NOW - datetime.timedelta(days=30), NOW, 30) == 0

    def test_naive_datetime_is_utc(self):
        """Test un datetime naive (es. da SQLite) viene interpretato come UTC."""
        deleted_at = (NOW - datetime.timedelta(days=29)).replace(tzinfo=None)
        assert days_remaining(deleted_at, NOW, 30) == 1

    def test_uses_configured_window(self):
        """Test senza retention_days si usa la configurazione (30 giorni)."""
        assert days_remaining(NOW - datetime.timedelta(days=29), NOW) == 1


class TestPurgeEligibility:

    def test_active_budget_is_not_eligible(self):
        assert is_purge_eligible(None, NOW) is False

    def test_recent_trash_is_not_eligible(self):
        assert is_purge_eligible(NOW - datetime.timedelta(days=1), NOW, 30) is False

    def test_expired_trash_is_eligible(self):
        assert is_purge_eligible(NOW - datetime.timedelta(days=31), NOW, 30) is True


def test_retention_deadline():
    deleted_at = datetime.datetime(2025, 1, 1, tzinfo=datetime.timezone.utc)
    assert retention_deadline(deleted_at, 30) == datetime.datetime(2025, 1, 31, tzinfo=datetime.timezone.utc)
