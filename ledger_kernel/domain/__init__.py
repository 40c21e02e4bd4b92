"""Pure domain layer: value objects, decisions and notifications. No I/O."""
