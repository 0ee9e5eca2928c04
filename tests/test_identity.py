import datetime

from kconnect.api.identity.base import Identity


def make_identity(expires_on):
    return Identity(access_token = "token", expires_on = expires_on, provider_name = "aad")


def test_expired():
    now = datetime.datetime.now(datetime.timezone.utc)
    assert make_identity(now - datetime.timedelta(minutes = 1)).expired is True
    assert make_identity(now + datetime.timedelta(hours = 1)).expired is False


def test_expired_treats_naive_times_as_utc():
    now = datetime.datetime.now(datetime.timezone.utc).replace(tzinfo = None)
    assert make_identity(now - datetime.timedelta(minutes = 1)).expired is True
    assert make_identity(now + datetime.timedelta(hours = 1)).expired is False
