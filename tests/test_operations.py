import os
import shutil
import tempfile
import logging
from unittest import mock
from django.conf import settings
from django.test import SimpleTestCase, override_settings
from provisioning import operations
from provisioning.context import StorageContext
from provisioning.exceptions import LocalFileNotFound, StorageConfigurationError, TransferError
from provisioning.interfaces.storage import StorageProvider
from provisioning.storage.local import LocalStorageProvider
from provisioning.uploads import FileDescriptor, UploadReason
from provisioning.validation import NameViolation

os.makedirs(os.path.join(settings.BASE_DIR, 'logs'), exist_ok=True)
logging.basicConfig(
    filename=os.path.join(settings.BASE_DIR, 'logs', 'test.log'),
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger('TestOperations')


@override_settings(AZURE_RESOURCE_GROUP='rg-ops', AZURE_LOCATION='northeurope',
                   AZURE_ENDPOINT_SUFFIX='core.windows.net', AZURE_UPLOAD_TIMEOUT=30)
class TestAccountOperations(SimpleTestCase):

    def setUp(self):
        self.storage_root = tempfile.mkdtemp(prefix='azstore_ops_')
        self.provider = LocalStorageProvider(base_path=self.storage_root)

    def tearDown(self):
        shutil.rmtree(self.storage_root, ignore_errors=True)

    def test_create_check_and_delete(self):
        logger.info("Testing account create/check/delete")
        result = operations.create_storage_account('opsstore01', provider=self.provider)
        self.assertTrue(result.created)
        self.assertTrue(result.available)
        self.assertTrue(result.verdict.valid)
        self.assertTrue(operations.check_storage_account('opsstore01', provider=self.provider))

        operations.delete_storage_account('opsstore01', provider=self.provider)
        self.assertFalse(operations.check_storage_account('opsstore01', provider=self.provider))

    def test_invalid_name_never_reaches_provider(self):
        provider = mock.Mock(spec=StorageProvider)
        result = operations.create_storage_account('Bad_Name', provider=provider)
        self.assertFalse(result.created)
        self.assertEqual(
            result.verdict.codes,
            (NameViolation.UPPERCASE, NameViolation.FORBIDDEN_CHARACTERS),
        )
        provider.exists.assert_not_called()
        provider.create.assert_not_called()

    def test_taken_name_is_not_created(self):
        provider = mock.Mock(spec=StorageProvider)
        provider.exists.return_value = True
        result = operations.create_storage_account('takenname', provider=provider)
        self.assertFalse(result.available)
        self.assertFalse(result.created)
        provider.create.assert_not_called()

    def test_defaults_come_from_settings(self):
        provider = mock.Mock(spec=StorageProvider)
        provider.exists.return_value = False
        operations.create_storage_account('freshname', provider=provider)
        provider.create.assert_called_once_with('freshname', 'rg-ops', 'northeurope')

    @override_settings(AZURE_RESOURCE_GROUP=None)
    def test_missing_resource_group(self):
        with self.assertRaises(StorageConfigurationError):
            operations.get_storage_account_key('opsstore01', provider=self.provider)

    def test_storage_context_fetches_key(self):
        operations.create_storage_account('opsstore01', provider=self.provider)
        context = operations.get_storage_context('opsstore01', provider=self.provider)
        self.assertEqual(context.account_name, 'opsstore01')
        self.assertEqual(context.account_key, self.provider.get_key('opsstore01', 'rg-ops'))
        self.assertEqual(context.account_url, 'https://opsstore01.blob.core.windows.net')

    def test_storage_context_with_known_key(self):
        provider = mock.Mock(spec=StorageProvider)
        context = operations.get_storage_context('opsstore01', account_key='a2V5', provider=provider)
        self.assertEqual(context.account_key, 'a2V5')
        provider.get_key.assert_not_called()


@override_settings(AZURE_RESOURCE_GROUP='rg-ops', AZURE_UPLOAD_TIMEOUT=30)
class TestUploadFileIfChanged(SimpleTestCase):

    def setUp(self):
        self.storage_root = tempfile.mkdtemp(prefix='azstore_upload_')
        self.source_dir = tempfile.mkdtemp(prefix='azstore_src_')
        self.provider = LocalStorageProvider(base_path=self.storage_root)

        operations.create_storage_account('uploadstore', provider=self.provider)
        self.context = operations.get_storage_context('uploadstore', provider=self.provider)
        operations.create_container('exports', self.context, provider=self.provider)

        self.source = os.path.join(self.source_dir, 'daily.csv')
        self._write(b"id,value\n1,10\n")

    def tearDown(self):
        shutil.rmtree(self.storage_root, ignore_errors=True)
        shutil.rmtree(self.source_dir, ignore_errors=True)

    def _write(self, content):
        with open(self.source, 'wb') as f:
            f.write(content)

    def test_first_upload_then_skip(self):
        logger.info("Testing conditional upload")
        first = operations.upload_file_if_changed(self.source, 'exports', self.context, provider=self.provider)
        self.assertTrue(first.should_upload)
        self.assertEqual(first.reason, UploadReason.NOT_PRESENT_REMOTELY)
        self.assertEqual(
            operations.list_blobs('exports', self.context, provider=self.provider),
            [FileDescriptor('daily.csv', 14)],
        )

        second = operations.upload_file_if_changed(self.source, 'exports', self.context, provider=self.provider)
        self.assertFalse(second.should_upload)
        self.assertEqual(second.reason, UploadReason.SKIPPED_IDENTICAL)

    def test_changed_size_and_forced_upload(self):
        operations.upload_file_if_changed(self.source, 'exports', self.context, provider=self.provider)

        self._write(b"id,value\n1,10\n2,20\n")
        changed = operations.upload_file_if_changed(self.source, 'exports', self.context, provider=self.provider)
        self.assertEqual(changed.reason, UploadReason.SIZE_MISMATCH)

        forced = operations.upload_file_if_changed(
            self.source, 'exports', self.context, force=True, provider=self.provider)
        self.assertEqual(forced.reason, UploadReason.FORCED_OVERRIDE)

    def test_custom_blob_name_is_compared(self):
        operations.upload_file_if_changed(
            self.source, 'exports', self.context, blob_name='2024/daily.csv', provider=self.provider)
        # A blob sharing the prefix must not be mistaken for the target
        decision = operations.upload_file_if_changed(
            self.source, 'exports', self.context, blob_name='2024/daily', provider=self.provider)
        self.assertEqual(decision.reason, UploadReason.NOT_PRESENT_REMOTELY)

    def test_skip_does_not_call_upload(self):
        provider = mock.Mock(spec=StorageProvider)
        provider.list_blobs.return_value = [FileDescriptor('daily.csv', 14)]
        decision = operations.upload_file_if_changed(self.source, 'exports', self.context, provider=provider)
        self.assertFalse(decision.should_upload)
        provider.list_blobs.assert_called_once_with('exports', self.context, prefix='daily.csv')
        provider.upload.assert_not_called()

    def test_upload_uses_configured_timeout(self):
        provider = mock.Mock(spec=StorageProvider)
        provider.list_blobs.return_value = []
        operations.upload_file_if_changed(self.source, 'exports', self.context, provider=provider)
        provider.upload.assert_called_once_with(self.source, 'exports', 'daily.csv', self.context, timeout=30)

    def test_missing_local_file_aborts_before_provider(self):
        provider = mock.Mock(spec=StorageProvider)
        with self.assertRaises(LocalFileNotFound):
            operations.upload_file_if_changed(
                os.path.join(self.source_dir, 'missing.csv'), 'exports', self.context, provider=provider)
        provider.list_blobs.assert_not_called()
        provider.upload.assert_not_called()

    def test_transfer_error_propagates(self):
        provider = mock.Mock(spec=StorageProvider)
        provider.list_blobs.return_value = []
        provider.upload.side_effect = TransferError('daily.csv', 'timed out')
        with self.assertRaises(TransferError):
            operations.upload_file_if_changed(self.source, 'exports', self.context, provider=provider)
        provider.upload.assert_called_once()


class TestStorageContext(SimpleTestCase):

    def test_connection_string(self):
        context = StorageContext('mystore', 'c2VjcmV0', endpoint_suffix='core.chinacloudapi.cn')
        self.assertEqual(
            context.connection_string,
            'DefaultEndpointsProtocol=https;AccountName=mystore;'
            'AccountKey=c2VjcmV0;EndpointSuffix=core.chinacloudapi.cn',
        )
        self.assertEqual(context.account_url, 'https://mystore.blob.core.chinacloudapi.cn')

    def test_repr_hides_key(self):
        self.assertNotIn('c2VjcmV0', repr(StorageContext('mystore', 'c2VjcmV0')))
