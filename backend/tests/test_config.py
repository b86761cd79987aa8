"""Tests for settings validation and key lookup."""

import pytest
from pydantic import ValidationError

from decor_search.config import PLACEHOLDER_API_KEY, Settings


class TestSettings:
    def test_api_key_lookup(self, make_settings):
        settings = make_settings(RAPIDAPI_KEY_ETSY="  etsy-key  ")
        assert settings.get_api_key("etsy") == "etsy-key"

    def test_placeholder_and_blank_keys_are_missing(self, make_settings):
        settings = make_settings(RAPIDAPI_KEY_ETSY=PLACEHOLDER_API_KEY, RAPIDAPI_KEY_AMAZON="")
        assert settings.get_api_key("etsy") == ""
        assert settings.get_api_key("amazon") == ""

    def test_primary_provider_is_normalized(self, make_settings):
        assert make_settings(BALANCE_PRIMARY_PROVIDER=" Etsy ").BALANCE_PRIMARY_PROVIDER == "etsy"
        assert make_settings(BALANCE_PRIMARY_PROVIDER="").BALANCE_PRIMARY_PROVIDER is None

    @pytest.mark.parametrize("ratio", [0, -0.1, 1.5])
    def test_invalid_ratio_rejected(self, ratio):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, BALANCE_PRIMARY_RATIO=ratio)

    def test_invalid_queue_size_rejected(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, QUEUE_MAX_CONCURRENT=0)
