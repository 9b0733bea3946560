"""
Error log enrichment service: Slack alert, GitHub snapshot, Claude analysis,
threaded Slack reply.
"""
__version__ = "0.1.0"
