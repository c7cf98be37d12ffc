import logging
from dataclasses import dataclass
from typing import List, Optional

from mixarchive.domain import Mix, Track
from mixarchive.services.track_poller import TrackPoller

logger = logging.getLogger(__name__)

# Resolves to the track attribute list once the page's client app has loaded
# it, and to undefined until then.
TRACKS_SCRIPT = """
() => new Promise((resolve) => {
  const app = window.App;
  const view = app && app.views ? app.views.mixView : undefined;
  if (typeof view === 'undefined' || !view.mix) {
    resolve(undefined);
    return;
  }
  view.mix.withInternationalTracks(() => {
    resolve(view.mix.tracks.models.map(model => model.attributes));
  });
  setTimeout(() => resolve(undefined), 50);
})
"""


@dataclass(frozen=True)
class MixPageSelectors:
    name: str = "#mix_name"
    owner: str = "#user_byline .propername"
    tags: str = "#mix_tags_display .tag"
    notes: str = "#description_html"
    notes_cutoff: str = "Download Tracklist"


class MixExtractor:
    def __init__(self, poller: TrackPoller, selectors: Optional[MixPageSelectors] = None):
        self.poller = poller
        self.selectors = selectors or MixPageSelectors()

    async def extract(self, page, url: str) -> Mix:
        """Read static fields once, then poll for the track list.

        Raises `ExtractionTimeout` if the track list never appears.
        """
        mix = await self.extract_static(page)
        mix.tracks = await self.poller.poll(lambda: self.read_tracks(page), url)
        return mix

    async def extract_static(self, page) -> Mix:
        s = self.selectors
        await page.wait_for(s.name)
        notes = await page.text(s.notes) or ""
        cut = notes.find(s.notes_cutoff)
        if cut >= 0:
            notes = notes[:cut]
        return Mix(
            name=await page.text(s.name) or "",
            owner=await page.text(s.owner) or "",
            tags=await page.texts(s.tags),
            notes=notes.strip(),
        )

    async def read_tracks(self, page) -> Optional[List[Track]]:
        raw = await page.evaluate(TRACKS_SCRIPT)
        if raw is None:
            return None
        return [
            Track(name=str(t.get("name") or ""), performer=str(t.get("performer") or ""))
            for t in raw
            if isinstance(t, dict)
        ]
