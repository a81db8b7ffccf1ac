"""Stock operations, reservation management and background maintenance."""
