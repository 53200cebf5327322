import pytest

from portdeck.errors import DiscoveryError
from portdeck.models import Service
from portdeck.scanner import PortScanner, parse_listeners

from .conftest import lsof_output


def test_wildcard_listener_becomes_service() -> None:
    output = lsof_output("node      1234  user   12u  IPv4 0x1234      0t0  TCP *:8080 (LISTEN)")
    assert parse_listeners(output) == [Service(name="node", pid="1234", port=8080, address="*:8080")]


def test_specific_bind_address_is_kept() -> None:
    output = lsof_output(
        "python3   2001  dev    3u  IPv4 0xabc        0t0  TCP 127.0.0.1:8000 (LISTEN)",
        "python3   2002  dev    3u  IPv6 0xdef        0t0  TCP [::1]:9001 (LISTEN)",
    )
    services = parse_listeners(output)
    assert [s.address for s in services] == ["127.0.0.1:8000", "[::1]:9001"]


def test_unresolved_host_falls_back_to_wildcard() -> None:
    output = lsof_output("ruby      77    dev    9u  IPv4 0x1 0t0 TCP localhost:8500 (LISTEN)")
    (service,) = parse_listeners(output)
    assert service.address == "*:8500"
    assert service.port == 8500


def test_header_is_skipped() -> None:
    header_only = "node 1 user 1u IPv4 0x0 0t0 TCP *:8080 (LISTEN)\n"
    assert parse_listeners(header_only) == []


def test_lines_without_listen_marker_are_ignored() -> None:
    output = lsof_output(
        "node      1234  user   12u  IPv4 0x1  0t0  TCP 127.0.0.1:8080->127.0.0.1:50000 (ESTABLISHED)",
        "garbage line",
        "",
        "   ",
        "node      1234  user   12u  IPv4 0x1  0t0  TCP *:8080",
    )
    assert parse_listeners(output) == []


@pytest.mark.parametrize("port", [22, 80, 443, 5432, 7999, 10000, 65535])
def test_ports_outside_service_ranges_are_dropped(port: int) -> None:
    output = lsof_output(f"daemon    10  root   5u  IPv4 0x1  0t0  TCP *:{port} (LISTEN)")
    assert parse_listeners(output) == []


@pytest.mark.parametrize("port", [8000, 8999, 9000, 9999])
def test_range_boundaries_are_included(port: int) -> None:
    output = lsof_output(f"svc       10  dev    5u  IPv4 0x1  0t0  TCP *:{port} (LISTEN)")
    assert [s.port for s in parse_listeners(output)] == [port]


def test_duplicate_pid_port_pairs_collapse() -> None:
    output = lsof_output(
        "java      1234  dev   40u  IPv4 0x1  0t0  TCP *:9090 (LISTEN)",
        "java      1234  dev   41u  IPv6 0x2  0t0  TCP *:9090 (LISTEN)",
    )
    services = parse_listeners(output)
    assert len(services) == 1
    assert services[0].pid == "1234"
    assert services[0].port == 9090


def test_same_process_on_several_ports_is_listed_per_port() -> None:
    output = lsof_output(
        "uvicorn   50  dev  7u  IPv4 0x1  0t0  TCP *:8001 (LISTEN)",
        "uvicorn   50  dev  8u  IPv4 0x2  0t0  TCP *:8002 (LISTEN)",
    )
    assert [(s.pid, s.port) for s in parse_listeners(output)] == [("50", 8001), ("50", 8002)]


def test_different_processes_on_same_port_are_both_kept_in_discovery_order() -> None:
    output = lsof_output(
        "gunicorn  300  dev  5u  IPv4 0x1  0t0  TCP *:8800 (LISTEN)",
        "gunicorn  301  dev  5u  IPv4 0x2  0t0  TCP *:8800 (LISTEN)",
    )
    assert [s.pid for s in parse_listeners(output)] == ["300", "301"]


def test_result_is_sorted_by_port() -> None:
    output = lsof_output(
        "c   3  dev  5u  IPv4 0x1  0t0  TCP *:9500 (LISTEN)",
        "a   1  dev  5u  IPv4 0x1  0t0  TCP *:8001 (LISTEN)",
        "b   2  dev  5u  IPv4 0x1  0t0  TCP 0.0.0.0:8500 (LISTEN)",
    )
    ports = [s.port for s in parse_listeners(output)]
    assert ports == sorted(ports) == [8001, 8500, 9500]


def test_discover_reads_from_system(fake_system) -> None:
    fake_system.listeners = lsof_output("node  1234  user  12u  IPv4 0x1  0t0  TCP *:8080 (LISTEN)")
    services = PortScanner(fake_system).discover()
    assert services == [Service("node", "1234", 8080, "*:8080")]
    assert fake_system.calls == [("enumerate",)]


def test_discover_empty_output_is_success(fake_system) -> None:
    assert PortScanner(fake_system).discover() == []


def test_discover_propagates_failure(fake_system) -> None:
    fake_system.discovery_error = DiscoveryError("lsof is not installed")
    with pytest.raises(DiscoveryError, match="lsof is not installed"):
        PortScanner(fake_system).discover()
