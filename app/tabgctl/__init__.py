"""tabgctl - provisioning for Totally Accurate Battlegrounds dedicated servers."""

__version__ = "0.1.0"
