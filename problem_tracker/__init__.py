"""
problem_tracker: personal problem-tracking service and client.

Trackers are stored per owner under a composite (ownerId, trackerId) key in a
key-value backend and served over a bearer-authenticated REST API. The client
package keeps a read cache consistent with the server through optimistic
mutations that roll back on failure and refetch on settle.
"""
