"""Test suite for the ChefCopilot backend."""
