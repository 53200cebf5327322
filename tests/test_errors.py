import pytest

from portdeck import errors

ERROR_CLASSES = [
    errors.DiscoveryError,
    errors.InspectionError,
    errors.ProcessNotFoundError,
    errors.SignalDispatchError,
    errors.RelaunchError,
    errors.SelfOperationError,
    errors.InvalidPidError,
]


@pytest.mark.parametrize("error_class", ERROR_CLASSES)
def test_error_kinds_are_documented(error_class) -> None:
    assert issubclass(error_class, errors.PortDeckError)
    assert error_class.__doc__ and error_class.__doc__.strip()


@pytest.mark.parametrize(
    "error_class, code",
    [
        (errors.DiscoveryError, 1),
        (errors.ProcessNotFoundError, 4),
        (errors.SelfOperationError, 3),
        (errors.InvalidPidError, 2),
    ],
)
def test_exit_codes(error_class, code) -> None:
    assert error_class("boom").exit_code == code


def test_error_carries_pid_and_cause() -> None:
    cause = OSError("denied")
    exc = errors.SignalDispatchError("failed", pid=7, cause=cause)
    assert exc.pid == 7
    assert exc.cause is cause
    assert str(exc) == "failed"
