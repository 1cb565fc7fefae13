"""
ddnsd - A dynamic DNS daemon.

This package keeps DNS records pointed at the host's current public IP
address across DNS providers (Tencent Cloud DNSPod, CloudFlare,
Alibaba Cloud DNS).
"""

__version__ = "0.1.0"
__author__ = "ddnsd Contributors"
