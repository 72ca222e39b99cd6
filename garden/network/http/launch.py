from garden import setup

setup.run()

from garden.network.http.server import server as http_server  # noqa: E402

# Booted with: uvicorn garden.network.http.launch:server
server = http_server
