"""
Result presenter: the idle → loading → success|error state machine behind the page.

ProcessingResult is an immutable record; each transition below returns a new
one. ResultPresenter holds the current record for one session and drives the
loader and the AI client through a submission.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

import gemini_service
import image_utils
from config import DOWNLOAD_FILENAME
from errors import ProcessingError, InvalidTransitionError

logger = logging.getLogger(__name__)

FALLBACK_ERROR_MESSAGE = "Failed to process image. Please check the URL or try another photo."


class ProcessingState(str, Enum):
    IDLE = 'idle'
    LOADING = 'loading'
    SUCCESS = 'success'
    ERROR = 'error'


@dataclass(frozen=True)
class ProcessingResult:
    original_url: str = ''
    processed_url: Optional[str] = None
    status: ProcessingState = ProcessingState.IDLE
    error_message: Optional[str] = None

    def to_dict(self):
        return {
            'status': self.status.value,
            'original_url': self.original_url,
            'processed_url': self.processed_url,
            'error_message': self.error_message,
        }


INITIAL_RESULT = ProcessingResult()

SUBMITTABLE = (ProcessingState.IDLE, ProcessingState.ERROR)
RESETTABLE = (ProcessingState.SUCCESS, ProcessingState.ERROR)


def _require(result, allowed, action):
    if result.status not in allowed:
        raise InvalidTransitionError(f"Cannot {action} while {result.status.value}")


def begin(result, original_url):
    _require(result, SUBMITTABLE, 'submit')
    return replace(result, original_url=original_url, processed_url=None,
                   status=ProcessingState.LOADING, error_message=None)


def succeed(result, processed_url):
    _require(result, (ProcessingState.LOADING,), 'complete')
    return replace(result, processed_url=processed_url, status=ProcessingState.SUCCESS, error_message=None)


def fail(result, error):
    _require(result, (ProcessingState.LOADING,), 'fail')
    message = str(error).strip() if error is not None else ''
    return replace(result, processed_url=None, status=ProcessingState.ERROR,
                   error_message=message or FALLBACK_ERROR_MESSAGE)


def reset(result):
    _require(result, RESETTABLE, 'reset')
    return INITIAL_RESULT


class ResultPresenter:
    """
    One session's view state.

    The loader and AI callables are injectable; by default they are the real
    image_utils and gemini_service functions. show_circle_preview is cosmetic
    and sits outside the state machine.
    """

    def __init__(self, load_url=None, load_file=None, process=None):
        self.load_url = load_url or image_utils.url_to_base64
        self.load_file = load_file or image_utils.file_to_base64
        self.process = process or gemini_service.process_image_with_ai
        self.result = INITIAL_RESULT
        self.show_circle_preview = True
        self.original_file = None

    @property
    def status(self):
        return self.result.status

    def submit_url(self, url):
        url = (url or '').strip()
        if not url:
            raise ValueError("No URL")
        self.result = begin(self.result, url)
        self.original_file = None
        return self._run(lambda: self.load_url(url))

    def submit_file(self, file, original_url='', mime_type=None):
        """Submit a local file. original_url is where the page can display the kept original."""
        self.result = begin(self.result, original_url)
        self.original_file = None

        def load():
            image = self.load_file(file, mime_type)
            self.original_file = (image.raw, image.mime_type)
            return image

        return self._run(load)

    def _run(self, load):
        try:
            image = load()
            processed = self.process(image)
        except ProcessingError as e:
            self.result = fail(self.result, e)
            logger.info(f"❌ Submission failed: {self.result.error_message}")
        except Exception as e:
            logger.exception("❌ Unexpected error while processing submission")
            self.result = fail(self.result, e)
        else:
            self.result = succeed(self.result, processed)
            logger.info("✅ Submission succeeded")
        return self.result

    def reset(self):
        self.result = reset(self.result)
        self.original_file = None
        return self.result

    def toggle_circle_preview(self):
        self.show_circle_preview = not self.show_circle_preview
        return self.show_circle_preview

    def download(self, filename=DOWNLOAD_FILENAME):
        """Return (bytes, mime_type, filename) for the processed image. Only valid in success."""
        _require(self.result, (ProcessingState.SUCCESS,), 'download')
        mime_type, raw = image_utils.parse_data_uri(self.result.processed_url)
        return raw, mime_type, filename
