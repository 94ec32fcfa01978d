"""Shared fixtures: a small curriculum, engine config and in-memory store."""

import pytest

from cyberpath.engine import CurriculumGraph
from cyberpath.schemas import (
    Achievement,
    ChallengeEntry,
    Difficulty,
    RecommendationConfig,
    ToolEntry,
    Unit,
)
from cyberpath.storage import MemoryStore
from cyberpath.tracker import Tracker
from cyberpath.utils import Catalog


def make_unit(unit_id, position, prerequisites=(), title=None):
    return Unit(
        id=unit_id,
        title=title or unit_id.title(),
        description=f"About {unit_id}",
        position=position,
        prerequisites=list(prerequisites),
    )


@pytest.fixture
def units():
    return [
        make_unit("recon", 1, title="Reconnaissance"),
        make_unit("web", 2, ["recon"], title="Web Application Hacking"),
        make_unit("exploit-dev", 3, ["recon", "web"], title="Exploit Development"),
        make_unit("active-directory", 4, ["recon", "web"], title="Active Directory Attacks"),
        make_unit("bluetooth", 5, ["recon"], title="Bluetooth Hacking"),
        make_unit("ctf", 6, ["recon", "web", "exploit-dev"], title="Capture The Flag"),
    ]


@pytest.fixture
def graph(units):
    return CurriculumGraph(units)


@pytest.fixture
def recommendation_config():
    return RecommendationConfig(
        tools=[
            ToolEntry(name="Metasploit", category="Exploit Development", description="Exploits"),
            ToolEntry(name="Wireshark", category="Network Analysis", description="Packets"),
            ToolEntry(name="John the Ripper", category="Password Cracking", description="Hashes"),
            ToolEntry(name="Gobuster", category="Web Enumeration", description="Dirs"),
            ToolEntry(name="Responder", category="Network Attacks", description="Poisoning"),
            ToolEntry(name="Empire", category="Post-Exploitation", description="C2"),
            ToolEntry(name="CrackMapExec", category="Active Directory", description="AD"),
        ],
        challenges=[
            ChallengeEntry(name="HackTheBox", difficulty=Difficulty.INTERMEDIATE, category="CTF", description="Labs"),
            ChallengeEntry(name="TryHackMe", difficulty=Difficulty.BEGINNER, category="Learning", description="Guided"),
            ChallengeEntry(name="VulnHub", difficulty=Difficulty.INTERMEDIATE, category="VM Labs", description="VMs"),
            ChallengeEntry(name="OverTheWire", difficulty=Difficulty.BEGINNER, category="Wargames", description="Games"),
            ChallengeEntry(name="Zero Day Range", difficulty=Difficulty.ADVANCED, category="Range", description="Hard"),
        ],
        unit_tool_categories={
            "Reconnaissance": ["Network Analysis", "Web Enumeration"],
            "Web Application Hacking": ["Web Enumeration"],
            "Exploit Development": ["Exploit Development"],
            "Active Directory Attacks": ["Active Directory", "Network Attacks", "Post-Exploitation"],
            "Bluetooth Hacking": ["Network Analysis"],
            "Capture The Flag": ["Password Cracking"],
        },
        unit_difficulty={
            "Reconnaissance": Difficulty.BEGINNER,
            "Exploit Development": Difficulty.ADVANCED,
        },
    )


@pytest.fixture
def achievements():
    return [
        Achievement(id=1, title="First Steps", description="Complete a unit", condition="complete_units:1"),
        Achievement(id=2, title="Script Kiddie", description="10 scripts", condition="tagged_projects:10"),
        Achievement(id=3, title="Bug Hunter", description="25 vulns", condition="find_vulns:25"),
        Achievement(id=4, title="Elite", description="Everything", condition="complete_all_units"),
        Achievement(id=5, title="Hat Trick", description="Three units", condition="complete_units:3"),
    ]


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def learner(store):
    return store.create_learner("user@cyberpath", "user@cyberpath.com")


@pytest.fixture
def catalog(units, achievements, recommendation_config):
    return Catalog(units=units, achievements=achievements, recommendations=recommendation_config)


@pytest.fixture
def tracker(store, catalog):
    return Tracker(store, catalog)
