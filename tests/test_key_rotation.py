"""Tests for password rotation and rehashing."""
import pytest

from navigator_vault.config import VaultConfig
from navigator_vault.exceptions import DecryptionFailed
from navigator_vault.key_rotation import rehash, rotate_password


class TestRotatePassword:
    """Tests for rotate_password."""

    def test_rotate(self, open_vault, vault_path, fast_config, sample):
        """Test that only the new password opens a rotated vault."""
        open_vault("old-password").save(sample)

        rotate_password(vault_path, "old-password", "new-password", config=fast_config)

        assert open_vault("new-password").load() == sample
        with pytest.raises(DecryptionFailed):
            open_vault("old-password").load()

    def test_rotate_draws_new_salt(self, open_vault, vault_path, fast_config, sample):
        """Test that rotation writes a fresh salt and nonce."""
        open_vault("old-password").save(sample)
        before = vault_path.read_bytes()

        rotate_password(vault_path, "old-password", "old-password", config=fast_config)

        assert vault_path.read_bytes()[17:45] != before[17:45]

    def test_wrong_old_password_leaves_file(self, open_vault, vault_path, fast_config, sample):
        """Test that a wrong old password changes nothing."""
        open_vault("old-password").save(sample)
        before = vault_path.read_bytes()

        with pytest.raises(DecryptionFailed):
            rotate_password(vault_path, "guess", "new-password", config=fast_config)

        assert vault_path.read_bytes() == before
        assert open_vault("old-password").load() == sample


class TestRehash:
    """Tests for rehash."""

    def test_rehash_upgrades_parameters(self, open_vault, sample):
        """Test rewriting a vault under stronger parameters."""
        open_vault().save(sample)
        stronger = open_vault(config=VaultConfig(memory_cost=128, iterations=2, parallelism=1))

        assert stronger.needs_rehash()
        assert rehash(stronger) is True

        params = stronger.read_header().params
        assert (params.memory_cost, params.iterations) == (128, 2)
        assert not stronger.needs_rehash()
        assert rehash(stronger) is False
        assert open_vault().load() == sample

    def test_force(self, open_vault, vault_path, sample):
        """Test a forced rehash under the same parameters."""
        vault = open_vault()
        vault.save(sample)
        before = vault_path.read_bytes()

        assert rehash(vault, force=True) is True
        assert vault_path.read_bytes() != before
        assert vault.load() == sample
