import os
from abc import ABC, abstractmethod
from typing import Mapping, Optional
from errors import ConfigurationError


class AssetError(Exception):
    pass


class AssetStoreUnbound(AssetError, ConfigurationError):
    message = 'Asset store is not bound, check ASSETS_DIR'


class AssetNotFound(AssetError):

    def __init__(self, key: str) -> None:
        super().__init__(f'Asset "{key}" does not exist in the store')
        self.key = key


class AssetStore(ABC):
    '''Key to text lookup for static pages.'''

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...


class DirectoryAssetStore(AssetStore):

    def __init__(self, root: str) -> None:
        self.root : str = os.path.realpath(root)

    def get(self, key: str) -> Optional[str]:
        path : str = os.path.realpath(os.path.join(self.root, key))
        if os.path.commonpath([self.root, path]) != self.root or not os.path.isfile(path):
            return None
        with open(path, encoding='utf-8') as f:
            return f.read()


class MemoryAssetStore(AssetStore):

    def __init__(self, assets: Optional[Mapping[str, str]] = None) -> None:
        self.assets : dict[str, str] = dict(assets or {})

    def get(self, key: str) -> Optional[str]:
        return self.assets.get(key)


def fetch_asset(store: Optional[AssetStore], key: str) -> str:
    if store is None:
        raise AssetStoreUnbound()
    content : Optional[str] = store.get(key)
    if not content:
        raise AssetNotFound(key)
    return content
