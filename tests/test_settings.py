#
# TextDump - Settings Tests
#

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from textdump.settings import DEFAULT_SETTINGS, DumpFormat, DumpSettings


# Local Classes & Methods ----------------------------------------------------------------------------------------------

class TestDumpSettings:
    def test_defaults(self):
        assert DEFAULT_SETTINGS.indent_size == 2
        assert DEFAULT_SETTINGS.max_length == 4 * 1024 * 1024
        assert DEFAULT_SETTINGS.max_elements == 10
        assert DEFAULT_SETTINGS.include_private is False
        assert DEFAULT_SETTINGS.format == DumpFormat()

    def test_replace(self):
        settings = DEFAULT_SETTINGS.replace(indent_size=4)
        assert settings.indent_size == 4
        assert DEFAULT_SETTINGS.indent_size == 2

    @pytest.mark.parametrize(
        ("kwargs", "exc", "match"),
        [
            pytest.param({"indent_size": 0}, ValueError, r"indent_size must be >=1", id="zero-indent"),
            pytest.param({"max_elements": "10"}, TypeError, r"max_elements must be an int", id="str"),
            pytest.param({"max_length": False}, TypeError, r"max_length must be an int", id="bool"),
            pytest.param({"include_private": 1}, TypeError, r"include_private must be a bool", id="flag"),
            pytest.param({"format": {}}, TypeError, r"format must be a DumpFormat", id="format"),
        ],
    )
    def test_validation(self, kwargs, exc, match):
        with pytest.raises(exc, match=match):
            DumpSettings(**kwargs)


class TestDumpFormat:
    def test_templates(self):
        fmt = DumpFormat()
        assert fmt.null == "<null>"
        assert fmt.sequence_truncated.format(shown=10, count=20) == "... dumped the first 10/20 elements."

    def test_validation(self):
        with pytest.raises(TypeError, match=r"DumpFormat\.null must be a str"):
            DumpFormat(null=None)
