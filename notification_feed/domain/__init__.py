"""Domain layer: entities and the ports the notification core depends on."""
