"""Helpers shared by the code generators."""


def to_camel_case(name: str) -> str:
    """Convert `int_msg_info` or `Normal` to `IntMsgInfo` / `Normal`."""
    parts = [part for part in name.split("_") if part]
    return "".join(part[0].upper() + part[1:] for part in parts)
