"""Tests for the keyword heuristics applied to user text."""

from __future__ import annotations

import pytest

from foliochat.guards import is_listing_request, is_project_info_query, is_relevant_question


class TestRelevance:
    @pytest.mark.parametrize(
        "text",
        [
            "explain calculus",
            "What is the weather in Chennai?",
            "Give me a recipe for biryani",
        ],
    )
    def test_off_topic(self, text):
        assert not is_relevant_question(text)

    @pytest.mark.parametrize(
        "text",
        [
            "What frameworks do you use?",
            "hello!",
            "explain your flood prediction project",
            "how to build something like your portfolio",
        ],
    )
    def test_relevant(self, text):
        assert is_relevant_question(text)

    def test_owner_name_counts_as_on_topic(self):
        assert not is_relevant_question("what is Sridharan studying")
        assert is_relevant_question("what is Sridharan studying", owner_name="Sridharan")


class TestProjectQueries:
    @pytest.mark.parametrize(
        "text",
        [
            "Tell me about the project Flood-Prediction",
            "what is project House Rent",
            "more info about the project ArtPromTai",
            "Describe project JP solutions",
            "What is your favorite project?",
        ],
    )
    def test_matches(self, text):
        assert is_project_info_query(text)

    def test_plain_mention_does_not_match(self):
        assert not is_project_info_query("Flood-Prediction looks neat")


class TestListing:
    def test_listing(self):
        assert is_listing_request("Can you list your projects?")
        assert is_listing_request("LIST repos")

    def test_not_listing(self):
        assert not is_listing_request("list your hobbies")
        assert not is_listing_request("show me your projects")
