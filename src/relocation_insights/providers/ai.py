"""
OpenAI chat adapter: community summaries and free-form location questions.

Responses are HTML fragments rendered directly by the frontend. Any
failure, including a missing key, yields a fixed apology string.
"""

from typing import Any, Optional, Sequence

import openai

from relocation_insights.config import settings
from relocation_insights.data.records import LocationRecord
from relocation_insights.exceptions import ProviderError, ProviderNotConfiguredError
from relocation_insights.logging_config import get_logger

logger = get_logger(__name__)

TEMPERATURE = 0.7
MAX_TOKENS = 1000
NOT_AVAILABLE = "Data not available"

SUMMARY_SYSTEM_PROMPT = (
    "You are a knowledgeable expert on cities in the United States, creating detailed "
    "and helpful community summaries for CBP employees considering relocation."
)
CHAT_SYSTEM_PROMPT = (
    "You are a helpful assistant for CBP employees considering relocation. Your role is "
    "to answer questions about various locations, help compare cities, and provide "
    "insights based on housing, safety, education, and lifestyle factors."
)

SUMMARY_FALLBACK = "We're unable to generate a community summary at this time. Please check back later."
CHAT_FALLBACK = "I'm sorry, I'm having trouble processing your question right now. Please try again later."
EMPTY_SUMMARY = "Summary not available at this time."
EMPTY_CHAT = "I'm sorry, I couldn't process your query at this time."


def _v(value: Any) -> Any:
    return value if value else NOT_AVAILABLE


def community_summary_prompt(location: LocationRecord) -> str:
    housing = location.housing_data
    safety = location.safety_data
    school = location.school_data
    lifestyle = location.lifestyle_data
    transport = location.transportation_data

    return f"""
Generate a detailed and engaging community summary for {location.name}, {location.state}.
Use the following information about the city to create an informative overview:

City Information:
- Population: {_v(location.population)}
- Region: {_v(location.region)}
- Climate: {_v(location.climate)}
- Median Income: ${_v(location.median_income)}
- Cost of Living: {_v(location.cost_of_living)} (100 is national average)
- Average Commute: {_v(location.average_commute)} minutes
- Median Age: {_v(location.median_age)}
- City Rating: {_v(location.rating)}/5

Housing Information:
- Median Home Price: ${_v(housing.get("medianHomePrice"))}
- Median Rent: ${_v(housing.get("medianRent"))}
- Homeownership Rate: {_v(housing.get("homeownershipRate"))}%
- Price to Income Ratio: {_v(housing.get("priceToIncomeRatio"))}

Safety Information:
- Crime Index: {_v(safety.get("crimeIndex"))} (lower is better)
- Crime Trend: {_v(safety.get("crimeTrend"))}
- Safety Rating: {_v(safety.get("safetyRating"))}

Education:
- School Rating: {_v(school.get("rating"))}/5
- Public Schools: {_v(school.get("publicSchools"))}
- Private Schools: {_v(school.get("privateSchools"))}
- Student-Teacher Ratio: {_v(school.get("studentTeacherRatio"))}:1

Lifestyle:
- Restaurants: {_v(lifestyle.get("restaurants"))}
- Entertainment Venues: {_v(lifestyle.get("entertainment"))}
- Parks: {_v(lifestyle.get("parks"))}
- Shopping Centers: {_v(lifestyle.get("shopping"))}
- Nightlife: {_v(lifestyle.get("nightlife"))}
- Arts & Culture: {_v(lifestyle.get("artsAndCulture"))}
- Outdoor Activities: {_v(lifestyle.get("outdoorActivities"))}
- Walk Score: {_v(lifestyle.get("walkScore"))}/100

Transportation:
- Transit Score: {_v(transport.get("transitScore"))}/100
- Bike Score: {_v(transport.get("bikeScore"))}/100
- Major Airports: {_v(transport.get("majorAirports"))}
- Public Transit: {"Available" if transport.get("hasPublicTransit") else "Limited/Unknown"}
- Interstate Access: {"Yes" if transport.get("interstateAccess") else "No/Unknown"}

Format the response in HTML with appropriate <h2>, <p>, and <ul> tags as needed.
Make the summary engaging and informative for CBP employees considering relocation to this area.
Include a brief introduction about the city's character, followed by sections on housing, safety, education, lifestyle, and transportation.
Limit your response to about 500-700 words.
"""


def city_summary_prompt(location: LocationRecord) -> str:
    housing = location.housing_data
    safety = location.safety_data
    return f"""
Write a short overview of {location.name}, {location.state} for a CBP employee considering relocation.

Key facts:
- Population: {_v(location.population)}
- Region: {_v(location.region)}
- Climate: {_v(location.climate)}
- Cost of Living: {_v(location.cost_of_living)} (100 is national average)
- Median Home Price: ${_v(housing.get("medianHomePrice"))}
- Safety Rating: {_v(safety.get("safetyRating"))}
- CBP Facilities: {_v(location.cbp_facilities)}

Format the response in HTML using <p> tags. Limit your response to about 250 words.
"""


def location_query_prompt(
    query: str,
    locations: Sequence[LocationRecord],
    compare_locations: Optional[Sequence[LocationRecord]] = None,
) -> str:
    roster = "\n".join(
        f"{loc.name}, {loc.state}: Population {loc.population or 'Unknown'}, Region: {loc.region or 'Unknown'}"
        for loc in locations
    )

    comparison = ""
    if compare_locations:
        comparison = "\nDetailed comparison data for:\n" + "\n".join(
            f"""
- {loc.name}, {loc.state}:
  Population: {_v(loc.population)}
  Median Income: ${_v(loc.median_income)}
  Cost of Living: {_v(loc.cost_of_living)} (national avg: 100)
  Median Home Price: ${_v(loc.housing_data.get("medianHomePrice"))}
  Crime Index: {_v(loc.safety_data.get("crimeIndex"))}
  Climate: {_v(loc.climate)}
  Transit Score: {_v(loc.transportation_data.get("transitScore"))}
  School Rating: {_v(loc.school_data.get("rating"))}/5"""
            for loc in compare_locations
        )

    return f"""
User Query: {query}

Available Locations:
{roster}

{comparison}

Please provide a helpful, accurate and detailed response to the user's query about CBP relocation information.
If the query is about comparing locations, provide a clear comparison of relevant factors between the cities.
If the query is about a specific location, focus on that location's details.
If you don't have enough information to answer, suggest what additional information would be helpful.
Format your response in HTML with appropriate tags for readability.
"""


class AIProvider:
    """
    Thin wrapper around the OpenAI chat completions API.

    The client is created lazily so the app starts without a key.
    """

    NAME = "OpenAI"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[openai.OpenAI] = None,
        timeout: Optional[int] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.providers.openai_api_key
        self.model = model or settings.providers.openai_model
        self.timeout = timeout or settings.providers.provider_timeout * 3
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key) or self._client is not None

    @property
    def client(self) -> openai.OpenAI:
        if self._client is None:
            if not self.api_key:
                raise ProviderNotConfiguredError(self.NAME)
            self._client = openai.OpenAI(api_key=self.api_key, timeout=self.timeout)
        return self._client

    def _complete(self, system_prompt: str, prompt: str) -> Optional[str]:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            temperature=TEMPERATURE,
            max_tokens=MAX_TOKENS,
        )
        if not response.choices:
            return None
        return response.choices[0].message.content

    def generate_community_summary(self, location: LocationRecord) -> str:
        try:
            content = self._complete(SUMMARY_SYSTEM_PROMPT, community_summary_prompt(location))
        except (openai.OpenAIError, ProviderError) as e:
            logger.error("Error generating community summary for %s: %s", location.city_key, e)
            return SUMMARY_FALLBACK
        return content or EMPTY_SUMMARY

    def generate_city_summary(self, location: LocationRecord) -> str:
        try:
            content = self._complete(SUMMARY_SYSTEM_PROMPT, city_summary_prompt(location))
        except (openai.OpenAIError, ProviderError) as e:
            logger.error("Error generating city summary for %s: %s", location.city_key, e)
            return SUMMARY_FALLBACK
        return content or EMPTY_SUMMARY

    def process_location_query(
        self,
        query: str,
        locations: Sequence[LocationRecord],
        compare_locations: Optional[Sequence[LocationRecord]] = None,
    ) -> str:
        try:
            content = self._complete(CHAT_SYSTEM_PROMPT, location_query_prompt(query, locations, compare_locations))
        except (openai.OpenAIError, ProviderError) as e:
            logger.error("Error processing location query: %s", e)
            return CHAT_FALLBACK
        return content or EMPTY_CHAT
