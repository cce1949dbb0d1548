"""Cloudflare DNS publishing."""
