"""Test suite for BrandPulse."""
