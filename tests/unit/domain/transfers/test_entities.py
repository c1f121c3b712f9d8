from datetime import datetime, timedelta, timezone

from oncedrop.domain.transfers import TokenRecord

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
TOKEN = "kT3mQ9vX2aLp0RzW8yBn4c"


def make_record(**overrides) -> TokenRecord:
    record = TokenRecord.create(TOKEN, "report.pdf", "application/pdf", 1024, now=NOW)
    for name, value in overrides.items():
        setattr(record, name, value)
    return record


class TestTokenRecord:
    def test_create_sets_24h_expiry_and_unused(self):
        record = make_record()
        assert record.created_at == NOW
        assert record.expires_at == NOW + timedelta(hours=24)
        assert record.used is False
        assert record.used_at is None
        assert record.purged is False
        assert record.object_key == f"{TOKEN}.bin"

    def test_expiry_boundary_is_inclusive(self):
        record = make_record()
        assert not record.is_expired(record.expires_at - timedelta(microseconds=1))
        assert record.is_expired(record.expires_at)

    def test_is_redeemable(self):
        assert make_record().is_redeemable(NOW)
        assert not make_record(used=True).is_redeemable(NOW)
        assert not make_record().is_redeemable(NOW + timedelta(days=2))

    def test_remaining_seconds(self):
        record = make_record()
        assert record.get_remaining_seconds(NOW) == 24 * 3600
        assert record.get_remaining_seconds(NOW + timedelta(days=3)) == 0

    def test_dict_round_trip_preserves_fields(self):
        record = make_record(used=True, used_at=NOW + timedelta(minutes=5))
        restored = TokenRecord.from_dict(record.to_dict())
        assert restored == record

    def test_from_dict_assumes_utc_for_naive_timestamps(self):
        data = make_record().to_dict()
        data["expires_at"] = "2024-03-02T12:00:00"
        restored = TokenRecord.from_dict(data)
        assert restored.expires_at.tzinfo is not None
        assert restored.expires_at == NOW + timedelta(hours=24)
