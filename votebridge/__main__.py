"""
votebridge entry point

Launches the HTTP server
"""

from votebridge.server import main

if __name__ == "__main__":
    main()
