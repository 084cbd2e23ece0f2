"""
Infrastructure layer - transports, resilience, subscriptions.
"""
