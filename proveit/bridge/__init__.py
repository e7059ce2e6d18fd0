"""Bridge layer between Proveit and the content-addressed network.

Modules
-------
fetcher
    ``ContentFetcher`` protocol consumed by the proof engine, and
    ``GatewayFetcher``, the default HTTP(S) backend that resolves content
    addresses through a public IPFS gateway.
"""
