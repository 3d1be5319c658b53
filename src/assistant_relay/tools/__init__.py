"""Tools the remote assistant can call, and the dispatcher that services them."""
