"""buzzboard : synchronisation temps réel d'un quiz à buzzers (animateur, écran, équipes)."""

__version__ = "0.1.0"
