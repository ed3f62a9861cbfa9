"""Pipeline stages for building the extension registry."""

from stages.base import BaseStage
from stages.discovery import KeywordDiscovery
from stages.details import DetailFetcher
from stages.downloads import DownloadEnricher
from stages.github import GithubEnricher, IssuePullScraper
from stages.versions import filter_all
from stages.writer import write_registry

__all__ = [
    "BaseStage",
    "KeywordDiscovery",
    "DetailFetcher",
    "DownloadEnricher",
    "GithubEnricher",
    "IssuePullScraper",
    "filter_all",
    "write_registry",
]
