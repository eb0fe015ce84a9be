"""Store for the user profile: load (404 means no profile yet) and save."""
from pydantic import BaseModel, ConfigDict

from fluxtrack.core.cancellation import CancelToken, RequestCancelled
from fluxtrack.core.store import Store
from fluxtrack.schemas.profile import UserProfile
from fluxtrack.services import api_client
from fluxtrack.services.api_client import error_message


class ProfileState(BaseModel):
    model_config = ConfigDict(frozen=True)

    profile: UserProfile | None = None
    loading: bool = False
    saving: bool = False
    error: str | None = None
    save_error: str | None = None


class ProfileStore(Store[ProfileState]):
    def __init__(self) -> None:
        super().__init__(ProfileState())

    async def load(self, cancel_token: CancelToken | None = None) -> None:
        seq, token = self._begin_read(cancel_token)
        self._update(loading=True, error=None)
        try:
            profile = await api_client.get_profile(cancel_token=token)
        except RequestCancelled:
            return
        except Exception as e:
            if self._is_current(seq, token):
                self._update(loading=False, error=error_message(e, "Failed to load profile"))
            return
        if self._is_current(seq, token):
            self._update(profile=profile, loading=False)

    refresh = load

    async def save(self, profile: UserProfile, cancel_token: CancelToken | None = None) -> bool:
        """Upsert the profile. A failure keeps the previously loaded profile."""
        self._update(saving=True, save_error=None)
        try:
            saved = await api_client.save_profile(profile, cancel_token=cancel_token)
        except RequestCancelled:
            return False
        except Exception as e:
            self._update(save_error=error_message(e, "Failed to save profile"))
            return False
        finally:
            self._update(saving=False)
        self._update(profile=saved)
        return True
