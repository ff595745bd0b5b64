"""Tests for locale set."""

import pytest

from localemap.core.locales import LocaleSet


class TestLocaleSet:
    """Tests for LocaleSet."""

    def test__default_locale__has_empty_prefix(self, locales: LocaleSet) -> None:
        """Serve the default locale without a path prefix."""
        assert locales.prefix("en") == ""

    def test__other_locale__uses_code_as_prefix(self, locales: LocaleSet) -> None:
        """Use the locale code as prefix for non-default locales."""
        assert locales.prefix("fr") == "fr"
        assert locales.prefix("zh") == "zh"

    def test__explicit_prefix__overrides_code(self) -> None:
        """Use configured prefix instead of the locale code."""
        locales = LocaleSet(locales=("en", "pt"), default="en", prefixes={"pt": "br"})

        assert locales.prefix("pt") == "br"

    def test__sitemap_locales__restrict_published(self, locales: LocaleSet) -> None:
        """Exclude path-only locales from published sitemaps."""
        assert locales.published == ("en", "fr", "es")
        assert "zh" in locales

    def test__no_sitemap_locales__publishes_all(self) -> None:
        """Publish every locale when no restriction is configured."""
        locales = LocaleSet(locales=("en", "fr"), default="en")

        assert locales.published == ("en", "fr")
        assert list(locales) == ["en", "fr"]

    def test__unknown_default__raises(self) -> None:
        """Reject a default locale that isn't supported."""
        with pytest.raises(ValueError, match="Default locale"):
            LocaleSet(locales=("en", "fr"), default="de")

    def test__unknown_sitemap_locale__raises(self) -> None:
        """Reject sitemap locales that aren't supported."""
        with pytest.raises(ValueError, match="Unknown sitemap locales"):
            LocaleSet(locales=("en",), default="en", sitemap_locales=("en", "fr"))

    def test__default_locale_prefix__raises(self) -> None:
        """Reject a prefix for the unprefixed default locale."""
        with pytest.raises(ValueError, match="cannot have a URL prefix"):
            LocaleSet(locales=("en", "fr"), default="en", prefixes={"en": "en"})
