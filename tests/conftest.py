"""Pytest fixtures for dropboxapi tests."""

import os

import pytest
from helpers import TEST_DIR, SIZE, FakeDropboxSession

from dropboxapi import DropboxClient


@pytest.fixture
def service():
    """A fresh in-memory Dropbox service."""
    return FakeDropboxSession()


@pytest.fixture
def client(service):
    """An authenticated client talking to the fake service."""
    c = DropboxClient("consumer-key", "consumer-secret", session=service)
    c.set_access_token(service.ACCESS_TOKEN, service.ACCESS_SECRET)
    return c


@pytest.fixture
def test_dir(client):
    """Create TEST_DIR for the test and delete it afterwards."""
    code, _ = client.create_folder(TEST_DIR)
    assert code.is_success
    yield TEST_DIR
    client.delete_file(TEST_DIR)


@pytest.fixture
def payload():
    return os.urandom(SIZE)
