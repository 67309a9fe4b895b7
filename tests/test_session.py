import pytest

from exceptions import InputError, InvalidDistanceError
from session import ReceiverSession


def test_small_and_big_steps():
    session = ReceiverSession(10.0)
    assert session.nudge(+1) == pytest.approx(10.1)
    assert session.nudge(-1, big=True) == pytest.approx(9.1)
    assert session.nudge(+1, big=True) == pytest.approx(10.1)
    assert session.nudge(-1) == pytest.approx(10.0)


def test_custom_steps_and_direct_step():
    session = ReceiverSession("-2", small_step=0.5, big_step=5)
    assert session.distance == -2.0
    session.step(-0.25)
    assert session.distance == pytest.approx(-2.25)
    session.nudge(+1, big=True)
    assert session.distance == pytest.approx(2.75)


def test_invalid_session_values():
    with pytest.raises(InvalidDistanceError):
        ReceiverSession("far")
    with pytest.raises(InputError):
        ReceiverSession(1.0).nudge(2)
    with pytest.raises(InputError):
        ReceiverSession(1.0, window_size=(0, 256))


def test_resize():
    session = ReceiverSession(1.0)
    assert session.window_size == (256, 256)
    assert session.resize(512.0, 300) == (512, 300)
