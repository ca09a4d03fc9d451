"""Sync, reconciliation, run history and call statistics services"""
