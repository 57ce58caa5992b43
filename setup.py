from setuptools import setup, find_packages

setup(
    name="realtime-chat",
    version="0.1.0",
    packages=find_packages(),
    install_requires=["openai", "python-dotenv", "requests"],
    extras_require={
        "test": ["pytest", "pytest-cov", "httpx"],
    },
    entry_points={
        "console_scripts": [
            "realtime-chat=realtime_chat.cli:main"
        ],
    },
    description="An interactive LLM chat REPL with real-time data commands and rate limiting.",
    python_requires=">=3.8",
)
