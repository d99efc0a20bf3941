# Marks `tracker.deps` as a package so `from tracker.deps.auth import require_api_key`
# resolves the same way in the app and in tests.
