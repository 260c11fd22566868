"""Unit tests for the package-level API and shared types."""

import pytest

import credcore
from credcore.matchers.exceptions import CQLSyntaxError, annotate_query
from credcore.matchers.scope import CredentialsScope
from credcore.secrets.codec import SecretCodec


class TestPackageExports:
    """Tests for the functions exported from credcore."""

    def test_exports(self):
        """Test the documented entry points are available."""
        for name in (
            "parse_query",
            "describe_query",
            "filter_credentials",
            "encode_secret",
            "decode_secret",
            "looks_like_encoded_secret",
        ):
            assert name in credcore.__all__
            assert callable(getattr(credcore, name))

    def test_query_workflow(self, alice, bob):
        """Test parsing, filtering and describing together."""
        query = credcore.parse_query('username == "bob" || scope in (GLOBAL)')

        assert credcore.filter_credentials([bob, alice], query) == [bob, alice]
        assert credcore.describe_query(query) == (
            '((username == "bob") || (scope in (GLOBAL)))'
        )

    def test_secret_workflow(self, global_codec: SecretCodec):
        """Test encoding and decoding through the package API."""
        envelope = credcore.encode_secret(b"value")

        assert credcore.looks_like_encoded_secret(envelope)
        assert not credcore.looks_like_encoded_secret("dmFsdWU=")
        assert credcore.decode_secret(envelope) == b"value"
        assert credcore.decode_secret("dmFsdWU=") == b"value"


class TestCredentialsScope:
    """Tests for CredentialsScope."""

    def test_declaration_order(self):
        """Test scopes keep their declaration order."""
        assert [s.name for s in CredentialsScope] == ["SYSTEM", "GLOBAL", "USER", "NODE"]

    @pytest.mark.parametrize(
        "name",
        [
            "GLOBAL",
            "CredentialsScope.GLOBAL",
            "credcore.matchers.scope.CredentialsScope.GLOBAL",
        ],
    )
    def test_from_name(self, name: str):
        """Test bare and qualified names resolve."""
        assert CredentialsScope.from_name(name) is CredentialsScope.GLOBAL

    def test_from_unknown_name(self):
        """Test unknown names raise KeyError."""
        with pytest.raises(KeyError):
            CredentialsScope.from_name("global")

    def test_display_names(self):
        """Test every scope describes its visibility."""
        assert {s.name: s.display_name for s in CredentialsScope} == {
            "SYSTEM": "System (the service and its agents only)",
            "GLOBAL": "Global (the service, its agents and all items)",
            "USER": "User",
            "NODE": "Node (this agent only)",
        }


class TestSyntaxErrors:
    """Tests for CQLSyntaxError formatting."""

    def test_str_includes_offset(self):
        """Test the offset prefixes the message."""
        error = CQLSyntaxError("expected ')'", offset=5, expected="')'")
        assert str(error) == "CQL syntax error at offset 5: expected ')'"

    def test_annotate_single_line(self):
        """Test the caret is placed under the offset."""
        assert annotate_query("a == ", 5, "oops") == "    a == \n         ^ oops"

    def test_annotate_offset_at_end_of_line(self):
        """Test an offset on a line break stays on that line."""
        rendered = annotate_query("ab\ncd", 2, "here").splitlines()
        assert rendered == ["    ab", "      ^ here", "    cd"]
