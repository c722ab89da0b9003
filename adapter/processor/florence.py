"""
Local Florence-2 captioning provider.

The model, processor and tokenizer are downloaded from the Hugging Face hub on
``initialize()`` and kept on the instance. Heavy imports (torch, transformers,
huggingface_hub) happen lazily so the remote providers work without them.
Blocking work runs in a thread to keep the event loop free.
"""

import asyncio
import io
import logging
from typing import Any, Optional

from PIL import Image
from tqdm.auto import tqdm

from core.exceptions import GenerationError
from core.settings import LOCAL_CAPTION_TASK
from domain.schemas.config import ImageServiceConfig
from domain.schemas.image import DescriptionResult
from adapter.processor.vision import ImageProvider


logger = logging.getLogger(__name__)


class DownloadProgressLogger(tqdm):
    """tqdm bar that reports download progress through logging instead of the terminal."""

    def __init__(self, *args, **kwargs):
        kwargs.pop("name", None)
        kwargs["disable"] = False
        kwargs["file"] = io.StringIO()
        super().__init__(*args, **kwargs)
        self._last_logged = -1.0

    def update(self, n=1):
        displayed = super().update(n)
        if self.total:
            percent = round(self.n / self.total * 100, 1)
            if percent != self._last_logged:
                self._last_logged = percent
                dots = "." * int(percent // 5)
                logger.info(f"Downloading Florence model: [{dots.ljust(20)}] {percent:.1f}%")
        return displayed


class LocalImageProvider(ImageProvider):
    """Florence-2 on the local device. Title and description are the same caption."""

    name = "Local"

    def __init__(self, config: ImageServiceConfig) -> None:
        self.model_id = config.local_model_id
        self.max_new_tokens = config.local_max_new_tokens
        self.model: Optional[Any] = None
        self.processor: Optional[Any] = None
        self.tokenizer: Optional[Any] = None
        self.device = "cpu"
        self.dtype: Optional[Any] = None

    def _load_sync(self) -> None:
        import torch
        from huggingface_hub import snapshot_download
        from transformers import AutoModelForCausalLM, AutoProcessor, AutoTokenizer

        self.device = "cuda" if torch.cuda.is_available() else "cpu"
        self.dtype = torch.float16 if self.device == "cuda" else torch.float32

        logger.info(f"Downloading Florence model {self.model_id}...")
        local_dir = snapshot_download(self.model_id, tqdm_class=DownloadProgressLogger)

        self.model = AutoModelForCausalLM.from_pretrained(
            local_dir, torch_dtype=self.dtype, trust_remote_code=True
        ).to(self.device)
        self.model.eval()

        logger.info("Downloading processor...")
        self.processor = AutoProcessor.from_pretrained(local_dir, trust_remote_code=True)

        logger.info("Downloading tokenizer...")
        self.tokenizer = AutoTokenizer.from_pretrained(local_dir, trust_remote_code=True)
        logger.info("Image service initialization complete")

    async def initialize(self) -> None:
        if self.model is not None:
            return
        await asyncio.to_thread(self._load_sync)

    def _caption_sync(self, data: bytes) -> str:
        image = Image.open(io.BytesIO(data)).convert("RGB")
        inputs = self.processor(text=LOCAL_CAPTION_TASK, images=image, return_tensors="pt")
        inputs = inputs.to(self.device, self.dtype) if self.dtype is not None else inputs.to(self.device)

        logger.debug("Generating image description")
        generated_ids = self.model.generate(
            input_ids=inputs["input_ids"],
            pixel_values=inputs["pixel_values"],
            max_new_tokens=self.max_new_tokens,
        )
        generated_text = self.tokenizer.batch_decode(generated_ids, skip_special_tokens=False)[0]
        result = self.processor.post_process_generation(
            generated_text,
            task=LOCAL_CAPTION_TASK,
            image_size=(image.width, image.height),
        )
        return str(result[LOCAL_CAPTION_TASK]).strip()

    async def describe(self, data: bytes, mime_type: str) -> DescriptionResult:
        if self.model is None or self.processor is None or self.tokenizer is None:
            raise GenerationError("Model components not initialized")
        try:
            caption = await asyncio.to_thread(self._caption_sync, data)
        except Exception as e:
            logger.error(f"[LocalImageProvider] Caption generation failed: {e}")
            raise GenerationError(f"Local caption generation failed: {e}") from e
        return DescriptionResult(title=caption, description=caption)
