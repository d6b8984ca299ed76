"""Tests for platform models and extension sources."""
import pytest

from romup.core.platforms import (
    Platform,
    ParsedListSource,
    EncodedStringSource,
    LegacyFieldSource,
)


class TestExtensionSources:

    def test_parsed_list(self):
        assert ParsedListSource(('.NES', 'unf', 'nes')).extract() == ('nes', 'unf')

    def test_json_string(self):
        assert EncodedStringSource('["snes", ".SMC"]').extract() == ('snes', 'smc')

    def test_malformed_json_falls_back_to_commas(self):
        assert EncodedStringSource('[snes, smc').extract() == ('[snes', 'smc')

    def test_comma_separated(self):
        assert EncodedStringSource('.a26, .bin').extract() == ('a26', 'bin')

    def test_json_non_list_falls_back(self):
        assert EncodedStringSource('"gb"').extract() == ('"gb"',)

    def test_legacy(self):
        assert LegacyFieldSource(' .GBA ').extract() == ('gba',)

    def test_non_string_tokens_dropped(self):
        assert ParsedListSource((None, 3, 'md')).extract() == ('md',)


class TestPlatform:

    def test_priority_list_over_json_over_legacy(self):
        platform = Platform(
            id=1, name='Genesis',
            extension='gen', extensions='["smd"]', extensions_list=('md',)
        )

        assert platform.resolve_extensions() == ('md',)

    def test_json_over_legacy(self):
        platform = Platform(id=1, name='SNES', extension='sfc', extensions='["snes", "smc"]')

        assert platform.resolve_extensions() == ('snes', 'smc')

    def test_empty_source_falls_through(self):
        platform = Platform(id=1, name='GB', extensions='[]', extension='.gb')

        assert platform.resolve_extensions() == ('gb',)

    def test_no_extensions(self):
        assert Platform(id=9, name='Empty').resolve_extensions() == ()

    def test_whitespace_fields_ignored(self):
        platform = Platform(id=9, name='Blank', extensions='  ', extension=' ')

        assert platform.extension_sources() == []

    def test_from_dict_camel_case(self):
        platform = Platform.from_dict({
            'id': '7', 'name': 'N64', 'extensionsList': ['z64', 'n64'],
            'isActive': False, 'description': 'Nintendo 64'
        })

        assert platform.id == 7
        assert platform.extensions_list == ('z64', 'n64')
        assert platform.is_active is False
        assert platform.description == 'Nintendo 64'

    def test_from_dict_decoded_extensions(self):
        platform = Platform.from_dict({'id': 2, 'name': 'SNES', 'extensions': ['smc']})

        assert platform.extensions is None
        assert platform.resolve_extensions() == ('smc',)

    def test_from_dict_missing_id(self):
        with pytest.raises(ValueError):
            Platform.from_dict({'name': 'Nameless'})

    def test_from_dict_default_name(self):
        assert Platform.from_dict({'id': 4}).name == 'Platform 4'

    def test_str(self):
        assert str(Platform(id=1, name='NES')) == 'NES (#1)'
