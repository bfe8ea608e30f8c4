"""Tests for database client."""

from unittest.mock import MagicMock, patch

import pytest

from defaultanswer.db.client import get_supabase_client


class TestGetSupabaseClient:
    """Test get_supabase_client() function."""

    @patch("defaultanswer.db.client.create_client")
    def test_creates_client_from_settings(self, mock_create_client, mock_settings_with_history):
        mock_client = MagicMock()
        mock_create_client.return_value = mock_client

        client = get_supabase_client()

        mock_create_client.assert_called_once_with(
            "https://test.supabase.co", "test-service-key"
        )
        assert client is mock_client

    @patch("defaultanswer.db.client.create_client")
    def test_unconfigured_raises(self, mock_create_client, mock_settings):
        with pytest.raises(ValueError, match="Supabase is not configured"):
            get_supabase_client()

        mock_create_client.assert_not_called()
