"""Tests for metaldeploy.conductor.progress."""

import threading

import pytest

from metaldeploy.common import exception
from metaldeploy.conductor import progress


def test_records_in_order_until_closed():
    channel = progress.ProgressChannel()
    channel.send('BEGIN', 0)
    channel.send('CONFIGURE', 10)
    channel.close()
    assert list(channel) == [progress.Progress('BEGIN', 0),
                             progress.Progress('CONFIGURE', 10)]


def test_iterating_again_after_close_is_empty():
    channel = progress.ProgressChannel()
    channel.send('DONE', 100)
    channel.close()
    list(channel)
    assert list(channel) == []


def test_send_after_close():
    channel = progress.ProgressChannel()
    channel.close()
    assert channel.closed
    with pytest.raises(exception.ChannelClosed):
        channel.send('DONE', 100)


def test_close_twice():
    channel = progress.ProgressChannel()
    channel.close()
    with pytest.raises(exception.ChannelClosed):
        channel.close()


def test_reader_on_another_thread():
    channel = progress.ProgressChannel()
    seen = []
    reader = threading.Thread(target=lambda: seen.extend(channel))
    reader.start()
    for pct in (0, 10, 15):
        channel.send('STEP', pct)
    channel.close()
    reader.join(5)
    assert not reader.is_alive()
    assert [r.percentage for r in seen] == [0, 10, 15]
