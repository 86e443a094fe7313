[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rtpkit"
version = "0.1.0"
description = "Building blocks for RTP stacks: payload types, profiles, jitter control, telephone events, event dispatch, logging and a network impairment simulator"
requires-python = ">=3.10"
dependencies = []
keywords = ["rtp", "rtcp", "voip", "jitter", "payload", "sdp", "fmtp", "dtmf", "network-simulation", "base64"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Internet Phone",
    "Topic :: Multimedia :: Sound/Audio",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rtpkit"]

[tool.pytest.ini_options]
addopts = "-ra"
