"""Conversation feature package: entities, repositories and stores.

Conversations and their messages are persisted through SQLAlchemy's async
ORM. The stores in ``service`` are the only entry points used by the chat
orchestrator.
"""
