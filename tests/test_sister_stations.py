import unittest
from unittest.mock import patch

import requests

from station_fetch.hourly import config
from station_fetch.hourly.models import RequestParams, RowAlignmentError, StationDataError
from station_fetch.hourly.sister_stations import (
    fetch_sister_station_hourly_data,
    fetch_sister_station_id_and_network,
    format_id_network
)


def make_params(ele_list=('temp', 'rhum'), network='newa'):
    return RequestParams(
        sid='ABC newa',
        ele_list=ele_list,
        sdate='2024-01-01',
        edate='2024-01-10',
        network=network,
    )


class FakeClient:
    """Answers StnData posts from a {sid: rows} table; unknown sids fail."""

    def __init__(self, rows_by_sid):
        self.rows_by_sid = rows_by_sid
        self.requested = []

    def post(self, url, payload):
        self.requested.append(payload['sid'])
        if payload['sid'] not in self.rows_by_sid:
            raise requests.exceptions.ConnectionError(f"no route to {payload['sid']}")
        return {'data': self.rows_by_sid[payload['sid']], 'meta': {'tzo': -5}}


class TestFormatIdNetwork(unittest.TestCase):

    def test_groups_elements_by_sister(self):
        data = {'temp': 'kalb icao', 'rhum': 'kalb icao', 'prcp': 'alb2 cu_log'}
        result = format_id_network(data, ['temp', 'prcp', 'rhum'])
        self.assertEqual(result, {'kalb icao': [1, 3], 'alb2 cu_log': [2]})
        self.assertEqual(list(result), ['kalb icao', 'alb2 cu_log'])

    def test_elements_without_sister_skipped(self):
        self.assertEqual(format_id_network({'temp': 'kalb icao'}, ['temp', 'lwet']),
                         {'kalb icao': [1]})

    def test_non_mapping_rejected(self):
        with self.assertRaises(StationDataError):
            format_id_network(['kalb icao'], ['temp'])


class TestFetchSisterStationIdAndNetwork(unittest.TestCase):

    @patch('station_fetch.hourly.sister_stations.get_json')
    def test_lookup_url_uses_id_and_network(self, mock_get):
        mock_get.return_value = {'temp': 'kalb icao', 'rhum': 'kalb icao'}

        result = fetch_sister_station_id_and_network(make_params())

        mock_get.assert_called_once_with(f"{config.SISTER_INFO_URL}/ABC/newa")
        self.assertEqual(result, {'kalb icao': [1, 2]})

    @patch('station_fetch.hourly.sister_stations.get_json')
    def test_failure_returns_none(self, mock_get):
        mock_get.side_effect = requests.exceptions.ConnectionError("down")

        with self.assertLogs('station_fetch.hourly.sister_stations', level='ERROR'):
            self.assertIsNone(fetch_sister_station_id_and_network(make_params()))


class TestFetchSisterStationHourlyData(unittest.TestCase):

    def test_single_sister_supplies_all_elements(self):
        rows = [['2024-01-01', '10', '50'], ['2024-01-02', '11', '60']]
        client = FakeClient({'kalb icao': rows})

        result = fetch_sister_station_hourly_data(
            make_params(network='icao'), {'kalb icao': [1, 2]}, client=client
        )

        self.assertEqual(len(result), 2)
        self.assertTrue(all(len(row) == 3 for row in result))
        self.assertEqual(result, [[None, '10', '50'], [None, '11', '60']])

    def test_columns_merged_from_several_sisters(self):
        client = FakeClient({
            'kalb icao': [['2024-01-01', '10', 'M', '0.1']],
            'alb2 cu_log': [['2024-01-01', 'M', '70', 'M']],
        })

        result = fetch_sister_station_hourly_data(
            make_params(ele_list=('temp', 'rhum', 'prcp'), network='icao'),
            {'kalb icao': [1, 3], 'alb2 cu_log': [2]},
            client=client
        )

        self.assertEqual(result, [[None, '10', '70', '0.1']])
        self.assertEqual(sorted(client.requested), ['alb2 cu_log', 'kalb icao'])

    def test_humidity_adjusted_for_newa(self):
        client = FakeClient({'kalb icao': [['2024-01-01', '10', '50']]})

        result = fetch_sister_station_hourly_data(
            make_params(network='newa'), {'kalb icao': [1, 2]}, client=client
        )

        self.assertEqual(result, [[None, '10', '65']])

    def test_humidity_unchanged_for_other_networks(self):
        client = FakeClient({'kalb icao': [['2024-01-01', '10', '50']]})

        result = fetch_sister_station_hourly_data(
            make_params(network='icao'), {'kalb icao': [1, 2]}, client=client
        )

        self.assertEqual(result, [[None, '10', '50']])

    def test_newa_without_rhum_untouched(self):
        client = FakeClient({'kalb icao': [['2024-01-01', '10', '50']]})

        result = fetch_sister_station_hourly_data(
            make_params(ele_list=('temp', 'prcp')), {'kalb icao': [1, 2]}, client=client
        )

        self.assertEqual(result, [[None, '10', '50']])

    def test_shorter_sister_leaves_trailing_rows_empty(self):
        client = FakeClient({
            'kalb icao': [['2024-01-01', '10'], ['2024-01-02', '11'], ['2024-01-03', '12']],
            'alb2 cu_log': [['2024-01-01', 'x', '0.1']],
        })

        with self.assertLogs('station_fetch.hourly.sister_stations', level='WARNING'):
            result = fetch_sister_station_hourly_data(
                make_params(ele_list=('temp', 'prcp'), network='icao'),
                {'kalb icao': [1], 'alb2 cu_log': [2]},
                client=client
            )

        self.assertEqual(result, [[None, '10', '0.1'], [None, '11', None], [None, '12', None]])

    def test_longer_sister_rows_dropped(self):
        client = FakeClient({
            'kalb icao': [['2024-01-01', '10']],
            'alb2 cu_log': [['2024-01-01', 'x', '0.1'], ['2024-01-02', 'x', '0.2']],
        })

        result = fetch_sister_station_hourly_data(
            make_params(ele_list=('temp', 'prcp'), network='icao'),
            {'kalb icao': [1], 'alb2 cu_log': [2]},
            client=client
        )

        self.assertEqual(result, [[None, '10', '0.1']])

    def test_strict_alignment_raises(self):
        client = FakeClient({
            'kalb icao': [['2024-01-01', '10'], ['2024-01-02', '11']],
            'alb2 cu_log': [['2024-01-01', 'x', '0.1']],
        })

        with patch.object(config, 'STRICT_ROW_ALIGNMENT', True):
            with self.assertRaises(RowAlignmentError):
                fetch_sister_station_hourly_data(
                    make_params(ele_list=('temp', 'prcp'), network='icao'),
                    {'kalb icao': [1], 'alb2 cu_log': [2]},
                    client=client
                )

    def test_failed_sister_skipped(self):
        client = FakeClient({'alb2 cu_log': [['2024-01-01', 'x', '0.1']]})

        with self.assertLogs('station_fetch.hourly.sister_stations', level='ERROR'):
            result = fetch_sister_station_hourly_data(
                make_params(ele_list=('temp', 'prcp'), network='icao'),
                {'kalb icao': [1], 'alb2 cu_log': [2]},
                client=client
            )

        self.assertEqual(result, [[None, None, '0.1']])

    def test_no_sisters_gives_empty_result(self):
        self.assertEqual(fetch_sister_station_hourly_data(make_params(), None), [])
        self.assertEqual(fetch_sister_station_hourly_data(make_params(), {}), [])

    def test_all_sisters_failed_gives_empty_result(self):
        result = fetch_sister_station_hourly_data(
            make_params(), {'kalb icao': [1, 2]}, client=FakeClient({})
        )
        self.assertEqual(result, [])


if __name__ == '__main__':
    unittest.main()
