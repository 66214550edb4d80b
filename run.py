#!/usr/bin/env python3
"""
Script de démarrage pour buzzboard
"""
import sys

from buzzboard.cli import main

if __name__ == "__main__":
    print("🎯 Démarrage du relais buzzboard...")
    print("🌐 API disponible sur: http://localhost:4000/api/state")
    print("🔌 Socket.IO sur: http://localhost:4000/socket.io")

    main(sys.argv[1:] or ["serve"])
