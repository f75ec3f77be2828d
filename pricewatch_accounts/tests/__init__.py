"""Tests for :mod:`pricewatch_accounts`."""
