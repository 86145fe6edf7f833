"""Run the server - development mode"""
import subprocess
import os
import sys

os.chdir(os.path.dirname(os.path.abspath(__file__)))
subprocess.run([
    sys.executable,
    "-m", "uvicorn",
    "worksite.main:app",
    "--reload",
    "--port", "8000"
])
