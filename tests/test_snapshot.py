"""Tests for token records and snapshot normalisation."""

from datetime import datetime, timedelta, timezone

import pytest

from token_sentinel.snapshot import normalize_token
from token_sentinel.token import RiskLevel, Token, parse_timestamp

from factories import NOW, make_risky_token, make_safe_token


class TestParseTimestamp:
    """Test timestamp parsing."""

    def test_iso_with_z_suffix(self):
        ts = parse_timestamp("2024-06-01T12:00:00Z")
        assert ts == NOW

    def test_epoch_milliseconds(self):
        ts = parse_timestamp(int(NOW.timestamp() * 1000))
        assert ts == NOW

    def test_naive_datetime_assumed_utc(self):
        ts = parse_timestamp(datetime(2024, 6, 1, 12, 0))
        assert ts.tzinfo is not None
        assert ts == NOW

    def test_empty_values(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp("") is None


class TestToken:
    """Test token serialisation and patching."""

    def test_dict_round_trip_preserves_nested_sections(self):
        token = make_safe_token(risk_score=0.2, risk_level="low")
        restored = Token.from_dict(token.to_dict())
        assert restored == token

    def test_from_dict_with_only_mint(self):
        token = Token.from_dict({"mint_address": "abc"})
        assert token.security_flags.is_honeypot is None
        assert token.holder_analysis.top_holders == []
        assert token.risk_level is None

    def test_apply_patch_merges_nested_fields(self):
        token = make_safe_token()
        patched = token.apply_patch({"security_flags": {"is_honeypot": True}, "risk_level": "high"})

        assert patched.security_flags.is_honeypot is True
        assert patched.security_flags.ownership_renounced is True
        assert patched.risk_level == RiskLevel.HIGH
        # Original untouched
        assert token.security_flags.is_honeypot is None

    def test_label_falls_back_to_mint_prefix(self):
        assert Token(mint_address="ABCDEFGHIJK").label == "ABCDEFGH"


class TestNormalizeToken:
    """Test snapshot normalisation."""

    def test_complete_token_has_no_missing_fields(self):
        snapshot = normalize_token(make_safe_token(), as_of=NOW)
        assert snapshot.missing_fields == ()
        assert snapshot.liquidity_usd == 50000.0
        assert snapshot.total_holders == 500
        assert snapshot.age_days == pytest.approx(30.0)
        assert snapshot.has_website and snapshot.has_twitter and not snapshot.has_telegram

    def test_missing_values_default_and_are_recorded(self):
        snapshot = normalize_token(make_risky_token(), as_of=NOW)
        assert snapshot.volume_24h_usd == 0.0
        assert snapshot.top_holders_concentration == 0.0
        assert snapshot.ownership_renounced is False
        assert snapshot.age_hours == 0.0
        assert "volume_24h_usd" in snapshot.missing_fields
        assert "created_at" in snapshot.missing_fields
        assert "total_liquidity_usd" not in snapshot.missing_fields

    def test_authority_flags_derived(self):
        token = make_safe_token(security_flags={"has_unlimited_minting": True})
        snapshot = normalize_token(token, as_of=NOW)
        assert snapshot.has_mint_authority
        assert not snapshot.has_freeze_authority

        token = make_safe_token(security_flags={"freeze_authority": "Auth111"})
        assert normalize_token(token, as_of=NOW).has_freeze_authority

    def test_days_to_unlock(self):
        token = make_safe_token(liquidity_info={"lp_unlock_time": NOW + timedelta(days=10)})
        snapshot = normalize_token(token, as_of=NOW)
        assert snapshot.days_to_unlock == pytest.approx(10.0)

    def test_age_never_negative(self):
        token = make_safe_token(created_at=NOW + timedelta(hours=2))
        assert normalize_token(token, as_of=NOW).age_hours == 0.0

    def test_defaults_to_current_time(self):
        snapshot = normalize_token(make_safe_token())
        assert snapshot.as_of.tzinfo == timezone.utc

    def test_naive_datetimes_treated_as_utc(self):
        naive_now = NOW.replace(tzinfo=None)
        token = Token(
            mint_address="NaiveMint",
            created_at=naive_now - timedelta(hours=6),
        )
        token = token.apply_patch(
            {"liquidity_info": {"lp_unlock_time": naive_now + timedelta(days=3)}}
        )

        assert token.created_at.tzinfo == timezone.utc
        assert token.liquidity_info.lp_unlock_time.tzinfo == timezone.utc

        snapshot = normalize_token(token, as_of=naive_now)
        assert snapshot.age_hours == pytest.approx(6.0)
        assert snapshot.days_to_unlock == pytest.approx(3.0)

    def test_patched_naive_timestamp_is_normalised(self):
        patched = make_safe_token().apply_patch(
            {"last_analyzed_at": datetime(2024, 6, 1, 11, 0)}
        )
        assert patched.last_analyzed_at == NOW - timedelta(hours=1)
