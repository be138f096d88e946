"""Node options shared by the run and render commands"""

from typing import Any, Dict

import click

# option parameter -> (config section, key)
OPTION_SETTINGS = {
    "role": ("node", "role"),
    "hostname": ("node", "hostname"),
    "cloud_env": ("node", "cloud_env"),
    "k3s_token": ("node", "join_token"),
    "load_balancer_ip": ("node", "load_balancer_address"),
    "k3s_url": ("node", "cluster_join_url"),
    "network_gateway": ("node", "network_gateway"),
    "tailscale_auth_key": ("mesh", "auth_key"),
    "tailscale_tag": ("mesh", "tag"),
    "s3_bucket": ("server", "etcd_s3_bucket"),
    "s3_access": ("server", "etcd_s3_access_key"),
    "s3_secret": ("server", "etcd_s3_secret_key"),
    "s3_endpoint": ("server", "etcd_s3_endpoint"),
    "hcloud_token": ("server", "hcloud_token"),
    "hcloud_network_name": ("server", "hcloud_network"),
    "letsencrypt_email": ("server", "letsencrypt_email"),
    "hcloud_ccm_version": ("versions", "hcloud_ccm"),
    "hcloud_csi_version": ("versions", "hcloud_csi"),
    "cilium_version": ("versions", "cilium"),
    "ingress_nginx_version": ("versions", "ingress_nginx"),
    "cert_manager_version": ("versions", "cert_manager"),
    "nats_version": ("versions", "nats"),
}

_OPTIONS = [
    click.option("--role", type=click.Choice(["server", "agent"]), help="Role: server or agent"),
    click.option("--hostname", help="Node hostname"),
    click.option("--cloud-env", help="Cloud environment (dev/prod)"),
    click.option("--k3s-token", help="K3s cluster token"),
    click.option("--load-balancer-ip", help="Load balancer IP"),
    click.option("--k3s-url", help="K3s URL (for agents)"),
    click.option("--network-gateway", help="Network gateway IP (informational)"),
    click.option("--tailscale-auth-key", help="Tailscale auth key"),
    click.option("--tailscale-tag", help="Override the advertised Tailscale tag"),
    click.option("--init", is_flag=True, help="This is the cluster init node"),
    click.option("--s3-bucket", help="etcd snapshot S3 bucket"),
    click.option("--s3-access", help="etcd snapshot S3 access key"),
    click.option("--s3-secret", help="etcd snapshot S3 secret key"),
    click.option("--s3-endpoint", help="etcd snapshot S3 endpoint"),
    click.option("--hcloud-token", help="Hetzner API token"),
    click.option("--hcloud-network-name", help="Hetzner network name"),
    click.option("--letsencrypt-email", help="Let's Encrypt email"),
    click.option("--hcloud-ccm-version", help="Hetzner CCM version"),
    click.option("--hcloud-csi-version", help="Hetzner CSI version"),
    click.option("--cilium-version", help="Cilium version"),
    click.option("--ingress-nginx-version", help="Ingress NGINX version"),
    click.option("--cert-manager-version", help="cert-manager version"),
    click.option("--nats-version", help="NATS version"),
]


def node_options(fn):
    """Attach every node option to a command"""
    for option in reversed(_OPTIONS):
        fn = option(fn)
    return fn


def pop_overrides(params: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Remove node options from ``params`` and group them by config section"""
    overrides: Dict[str, Dict[str, Any]] = {}
    for name, (section, key) in OPTION_SETTINGS.items():
        overrides.setdefault(section, {})[key] = params.pop(name, None)

    # A missing flag must not clear an init flag set in the config file
    overrides["node"]["is_init"] = True if params.pop("init", False) else None
    return overrides
