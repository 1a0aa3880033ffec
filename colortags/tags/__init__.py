"""Tag storage: store, persistence codec, and the TagService system."""
