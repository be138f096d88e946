"""Tests for the preflight checks"""

from dataclasses import replace

import pytest

from nodeboot.bootstrap.versions import validate_role_settings, validate_versions
from nodeboot.config.node import ComponentVersions, Role
from nodeboot.errors import ConfigurationError, MissingVersionsError


class TestValidateVersions:
    """Version guard"""

    def test_all_present(self, server_config):
        """Populated versions pass"""
        validate_versions(server_config.versions)

    def test_reports_every_missing_field(self):
        """All blank versions are named in one error"""
        versions = ComponentVersions(
            hcloud_ccm="1.29.1",
            hcloud_csi="",
            cilium="1.15.1",
            ingress_nginx="  ",
            cert_manager="v1.14.0",
            nats="",
        )

        with pytest.raises(MissingVersionsError) as exc:
            validate_versions(versions)

        assert exc.value.missing == ["hcloud_csi", "ingress_nginx", "nats"]
        assert "hcloud_csi" in str(exc.value)
        assert "nats" in str(exc.value)

    def test_is_a_configuration_error(self):
        """Callers can catch the general configuration error"""
        with pytest.raises(ConfigurationError):
            validate_versions(ComponentVersions())


class TestValidateRoleSettings:
    """Role-specific required settings"""

    def test_complete_server(self, server_config):
        validate_role_settings(server_config)

    def test_complete_agent(self, agent_config):
        validate_role_settings(agent_config)

    def test_agent_without_join_url(self, agent_config):
        with pytest.raises(ConfigurationError) as exc:
            validate_role_settings(replace(agent_config, cluster_join_url=""))
        assert "--k3s-url" in str(exc.value)

    def test_agent_cannot_init(self, agent_config):
        with pytest.raises(ConfigurationError) as exc:
            validate_role_settings(replace(agent_config, is_init=True))
        assert "--init" in str(exc.value)

    def test_joining_server_needs_load_balancer(self, server_config):
        cfg = replace(server_config, is_init=False, load_balancer_address="")
        with pytest.raises(ConfigurationError) as exc:
            validate_role_settings(cfg)
        assert "--load-balancer-ip" in str(exc.value)

    def test_server_secrets_all_reported(self, server_config):
        """Every missing server secret is listed together"""
        cfg = replace(server_config, hcloud_token="", etcd_s3_bucket="", letsencrypt_email="")
        with pytest.raises(ConfigurationError) as exc:
            validate_role_settings(cfg)

        assert len(exc.value.problems) == 3
        message = str(exc.value)
        for flag in ("--hcloud-token", "--s3-bucket", "--letsencrypt-email"):
            assert flag in message

    def test_agent_ignores_server_secrets(self, agent_config):
        """Server-only fields are not required of agents"""
        assert agent_config.role is Role.AGENT
        assert agent_config.hcloud_token == ""
        validate_role_settings(agent_config)

    def test_missing_token_and_key(self, agent_config):
        cfg = replace(agent_config, join_token="", mesh_auth_key="")
        with pytest.raises(ConfigurationError) as exc:
            validate_role_settings(cfg)
        assert len(exc.value.problems) == 2
