"""
Durable client-side state.

Modules
=======

``store``
    SQLite story cache (stories + remote keys) behind
    :class:`~storyline.memory.store.StoryDatabase`.
``session``
    :class:`~storyline.memory.session.SessionStore`, the persisted logged-in
    user record with change notifications.
"""
