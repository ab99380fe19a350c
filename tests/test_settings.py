# tests/test_settings.py
import pytest

from core.settings import SettingsStore


class TestSettingsStore:
    """Explicit key/value context with per-key source tracking."""

    def test_define_only_fills_gaps(self, settings):
        assert settings.define('GW_LOG_KEEP', '20') is True
        settings.set('GW_LOG_KEEP', '5', source='cli')
        assert settings.define('GW_LOG_KEEP', '20') is False
        assert settings.get('GW_LOG_KEEP') == '5'
        assert settings.source_of('GW_LOG_KEEP') == 'cli'

    def test_initial_values_are_caller_sourced(self):
        store = SettingsStore({'APP_NAME': 'Ada', 'APP_RUNS': 3})
        assert store.get('APP_RUNS') == '3'
        assert store.source_of('APP_NAME') == 'caller'

    def test_invalid_keys_are_rejected(self, settings):
        with pytest.raises(ValueError):
            settings.set('not-a-name', 'x')
        with pytest.raises(ValueError):
            settings.define('1ST', 'x')

    @pytest.mark.parametrize('raw, expected', [
        ('1', True), ('yes', True), ('On', True), ('0', False), ('', False), ('no', False),
    ])
    def test_flag(self, settings, raw, expected):
        settings.set('FLAG_X', raw)
        assert settings.flag('FLAG_X') is expected

    def test_accessors(self, settings):
        settings.set('A', None)
        settings.set('B', 'x')
        assert settings.get('A') == ''
        assert settings.as_int('B', 7) == 7
        assert settings.get('MISSING', 'fallback') == 'fallback'
        with pytest.raises(KeyError):
            settings.require('MISSING')
        assert settings.subset(['A', 'MISSING']) == {'A': ''}
        settings.unset('A')
        assert 'A' not in settings
        assert settings.source_of('A') is None
        assert settings.as_dict() == {'B': 'x'}
