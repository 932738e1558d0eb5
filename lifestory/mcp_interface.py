"""
MCP Interface Layer using fastmcp for storytelling conversations and biographies.
"""
from typing import Any, Dict, List, Optional

from fastmcp import FastMCP

from .exceptions import InvalidInputError, NotFoundError
from .services.biography_synthesis import BiographySynthesizer
from .services.generation_sources import build_long_form_generator, build_sources
from .services.memory_service import MemoryService, MemoryServiceError
from .services.response_orchestrator import ResponseOrchestrator
from .services.turn_store import create_turn_store
from .utils.config import config
from .utils.health_check import check_health, get_system_info
from .utils.logging_config import get_logger

logger = get_logger(__name__)

# Initialize FastMCP application
mcp = FastMCP('Life Story')

turn_store = create_turn_store(config)
orchestrator = ResponseOrchestrator(build_sources(config.conversation, config.huggingface, config.bedrock_llm),
                                    turn_store,
                                    conversation_config=config.conversation)
memory_service = MemoryService(
    turn_store,
    BiographySynthesizer(generator=build_long_form_generator(config.biography, config.huggingface, config.bedrock_llm),
                         biography_config=config.biography))


@mcp.tool()
def chat(message: str,
         language: Optional[str] = None,
         session_id: Optional[str] = None,
         history: Optional[List[Dict[str, str]]] = None,
         person_id: Optional[str] = None) -> Dict[str, Any]:
    """Reply to a storyteller's message and record the exchange.

    Args:
        message: The person's new message
        language: Language tag such as 'en-US' or 'ur-PK'
        session_id: Existing session id; a new one is created when omitted
        history: Prior exchanges as {'user': ..., 'ai': ...} dicts, oldest first
        person_id: Person the conversation belongs to

    Returns:
        Dictionary with reply, sessionId, timestamp, source and persisted

    Raises:
        Exception: If the message is missing
    """
    try:
        reply = orchestrator.respond(message, language=language, session_id=session_id, history=history, person_id=person_id)
        return reply.to_dict()

    except InvalidInputError as e:
        logger.warning(f'Invalid chat request: {e}')
        raise Exception(f'Chat failed: {e}')


@mcp.tool()
def save_memory(text: str, language: str, person_id: Optional[str] = None) -> Dict[str, Any]:
    """Save a standalone memory for a person.

    Args:
        text: Memory text
        language: Language tag of the text
        person_id: Person the memory belongs to

    Returns:
        The stored note

    Raises:
        Exception: If the input is invalid or the memory cannot be stored
    """
    try:
        return memory_service.save_note(text, language, person_id=person_id).to_dict()

    except InvalidInputError as e:
        logger.warning(f'Invalid save_memory request: {e}')
        raise Exception(f'Saving memory failed: {e}')
    except MemoryServiceError as e:
        raise Exception(str(e))


@mcp.tool()
def get_conversations(session_id: Optional[str] = None, person_id: Optional[str] = None, limit: int = 100) -> List[Dict[str, Any]]:
    """List stored conversation turns, newest first.

    Args:
        session_id: Only turns from this session
        person_id: Only turns for this person
        limit: Maximum number of turns, between 1 and 1000

    Returns:
        List of turn dictionaries
    """
    try:
        turns = memory_service.get_conversations(session_id=session_id, person_id=person_id, limit=limit)
        logger.debug(f'MCP get_conversations returned {len(turns)} turns')
        return [turn.to_dict() for turn in turns]

    except MemoryServiceError as e:
        raise Exception(str(e))


@mcp.tool()
def list_people() -> List[str]:
    """List every person id that has conversations or saved memories."""
    try:
        return memory_service.get_people()

    except MemoryServiceError as e:
        raise Exception(str(e))


@mcp.tool()
def export_data(person_id: Optional[str] = None) -> Dict[str, Any]:
    """Export stored conversations and saved memories, oldest first.

    Args:
        person_id: Only this person's records; everyone's when omitted

    Returns:
        Dictionary with conversations, memories, people and their totals
    """
    try:
        return memory_service.get_person_data(person_id).to_dict()

    except MemoryServiceError as e:
        raise Exception(str(e))


@mcp.tool()
def search_conversations(query: str, person_id: Optional[str] = None) -> List[Dict[str, Any]]:
    """Search stored messages and replies for a phrase.

    Args:
        query: Text to look for
        person_id: Only search this person's conversations

    Returns:
        Matching turn dictionaries, newest first
    """
    try:
        return [turn.to_dict() for turn in memory_service.search_conversations(query, person_id=person_id)]

    except InvalidInputError as e:
        raise Exception(f'Search failed: {e}')
    except MemoryServiceError as e:
        raise Exception(str(e))


@mcp.tool()
def generate_biography(person_id: str) -> Dict[str, Any]:
    """Write a biography from everything a person has shared.

    Args:
        person_id: Person to write about

    Returns:
        Dictionary with personId, biography and stats

    Raises:
        Exception: If the person id is missing or nothing has been recorded for them
    """
    try:
        return memory_service.analyze_person(person_id).to_dict()

    except InvalidInputError as e:
        raise Exception(f'Biography failed: {e}')
    except NotFoundError as e:
        logger.info(f'No history for biography request: {e}')
        raise Exception(f'Biography failed: {e}')
    except MemoryServiceError as e:
        raise Exception(str(e))


@mcp.tool()
def health() -> Dict[str, Any]:
    """Report whether the configured generation sources and storage are reachable."""
    system_info = get_system_info()
    system_info['healthy'] = check_health(system_info['health_status'])
    return system_info


if __name__ == '__main__':
    transport = config.mcp.transport
    host = config.mcp.host
    port = config.mcp.port
    mcp.run(transport=transport, host=host, port=port)
