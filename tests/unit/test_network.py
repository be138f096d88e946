"""Tests for network discovery"""

from dataclasses import replace

import pytest

from nodeboot.bootstrap.network import NetworkDiscovery
from nodeboot.errors import NetworkError


def discovery(table, runner, sleep, **kwargs):
    return NetworkDiscovery(list_interfaces=lambda: table, runner=runner, sleep=sleep, **kwargs)


class TestDetectInterface:
    """Interface detection"""

    def test_picks_first_ethernet(self, make_runner, fake_sleep, addrs):
        table = {"lo": [], "docker0": [], "ens3": [addrs.ipv4("10.0.0.5")], "eth1": []}
        assert discovery(table, make_runner(), fake_sleep).detect_interface() == "ens3"

    def test_no_match(self, make_runner, fake_sleep):
        table = {"lo": [], "wlan0": [], "tailscale0": []}
        with pytest.raises(NetworkError, match="no ethernet interface found"):
            discovery(table, make_runner(), fake_sleep).detect_interface()


class TestWaitForAddress:
    """Address polling and DHCP fallback"""

    def test_address_already_present(self, interfaces, make_runner, fake_sleep, sleeps):
        runner = make_runner()
        assert discovery(interfaces, runner, fake_sleep).wait_for_address("eth0") == "10.0.0.2"
        assert sleeps == []
        assert runner.calls == []

    def test_skips_loopback_and_ipv6(self, make_runner, fake_sleep, addrs):
        table = {"eth0": [addrs.ipv6("fe80::1"), addrs.ipv4("127.0.0.5"), addrs.ipv4("192.168.1.4")]}
        assert discovery(table, make_runner(), fake_sleep).wait_for_address("eth0") == "192.168.1.4"

    def test_address_appears_after_polling(self, make_runner, fake_sleep, sleeps, addrs):
        table = {"eth0": []}

        def sleep(seconds):
            fake_sleep(seconds)
            if len(sleeps) == 3:
                table["eth0"] = [addrs.ipv4("10.0.0.9")]

        result = discovery(table, make_runner(), sleep).wait_for_address("eth0")

        assert result == "10.0.0.9"
        assert sleeps == [1, 1, 1]

    def test_renews_lease_after_timeout(self, make_runner, fake_sleep, sleeps, addrs):
        """One DHCP renewal, then a second bounded poll"""
        table = {"eth0": []}

        def renew(cmd):
            table["eth0"] = [addrs.ipv4("10.0.0.7")]
            return (0, "")

        runner = make_runner()
        original = runner.__call__

        def runner_with_renewal(cmd, check=True, env=None):
            result = original(cmd, check=check, env=env)
            if cmd[:2] == ["networkctl", "renew"]:
                renew(cmd)
            return result

        nd = discovery(table, runner_with_renewal, fake_sleep, attempts=5)

        assert nd.wait_for_address("eth0") == "10.0.0.7"
        assert runner.calls == [["networkctl", "renew", "eth0"]]
        assert len(sleeps) == 5

    def test_fails_after_second_timeout(self, make_runner, fake_sleep, sleeps):
        runner = make_runner()
        nd = discovery({"eth0": []}, runner, fake_sleep, attempts=60)

        with pytest.raises(NetworkError, match="timeout"):
            nd.wait_for_address("eth0")

        assert len(sleeps) == 120
        assert runner.commands("networkctl", "renew") == [["networkctl", "renew", "eth0"]]

    def test_failed_renewal_still_polls_again(self, make_runner, fake_sleep, sleeps):
        runner = make_runner({("networkctl",): (1, "no such link")})
        nd = discovery({"eth0": []}, runner, fake_sleep, attempts=3)

        with pytest.raises(NetworkError):
            nd.wait_for_address("eth0")

        assert len(sleeps) == 6


class TestDiscover:
    """Discovery updates the node config"""

    def test_sets_interface_and_ip(self, agent_config, interfaces, make_runner, fake_sleep):
        cfg = replace(agent_config, private_ip=None, interface=None)

        discovery(interfaces, make_runner(), fake_sleep).discover(cfg)

        assert cfg.interface == "eth0"
        assert cfg.private_ip == "10.0.0.2"
