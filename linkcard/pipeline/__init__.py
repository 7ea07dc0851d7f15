"""Asset acquisition and card assembly."""
