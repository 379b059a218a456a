# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.
# SPDX-License-Identifier: MPL-2.0

from typing import List, Any, Dict, Union
import datetime
import pandas as pd
import nptyping as npt
from scipy.sparse import csc_matrix, csr_matrix
from NodalFlowEngine.enumerations import LogSeverity

IntList = List[int]
IntVec = npt.NDArray[npt.Shape['*'], npt.Int]
BoolVec = npt.NDArray[npt.Shape['*'], npt.Bool]
Vec = npt.NDArray[npt.Shape['*'], npt.Double]
CxVec = npt.NDArray[npt.Shape['*'], npt.Complex]
StrVec = npt.NDArray[npt.Shape['*'], npt.String]
ObjVec = npt.NDArray[npt.Shape['*'], npt.Object]
Mat = npt.NDArray[npt.Shape['*, *'], npt.Double]
CxMat = npt.NDArray[npt.Shape['*, *'], npt.Complex]
CscMat = csc_matrix
CsrMat = csr_matrix


class LogEntry:
    """
    Logger entry
    """

    def __init__(self,
                 time: Union[str, None] = None,
                 msg="",
                 severity: LogSeverity = LogSeverity.Information,
                 device="",
                 value="",
                 expected_value="",
                 device_class=""):
        """

        :param time: time stamp string, if None the current time is used
        :param msg: message
        :param severity: LogSeverity
        :param device: label of the element concerned
        :param value: offending value
        :param expected_value: value that was expected
        :param device_class: kind of element (Bus, Branch, Generator)
        """
        if time is None:
            self.time = "{date:%H:%M:%S}".format(date=datetime.datetime.now())
        else:
            self.time = time
        self.msg = str(msg)
        self.severity = severity
        self.device = device
        self.device_class = device_class
        self.value = value
        self.expected_value = str(expected_value)

    def to_list(self) -> List[Any]:
        """
        Get list representation of this entry
        :return:
        """
        return [self.time, self.severity.value, self.msg,
                self.device_class, self.device, self.value, self.expected_value]

    def __str__(self):
        return "{0} {1}: {2} {3} {4} {5}".format(self.time,
                                                 self.severity.value,
                                                 self.msg,
                                                 self.device,
                                                 self.value,
                                                 self.expected_value)


class Logger:
    """
    Logger class
    """

    def __init__(self) -> None:

        self.entries: List[LogEntry] = list()

    def has_logs(self) -> bool:
        """
        Are there any logs?
        :return: True / False
        """
        return len(self.entries) > 0

    def add(self, msg: str, severity: LogSeverity = LogSeverity.Error, device="", value="", expected_value="",
            device_class=''):
        """
        Add general entry
        :param msg: message
        :param severity: LogSeverity
        :param device: element label
        :param value: offending value
        :param expected_value: expected value
        :param device_class: element kind
        """
        self.entries.append(LogEntry(msg=str(msg),
                                     severity=severity,
                                     device=str(device),
                                     value=str(value),
                                     expected_value=str(expected_value),
                                     device_class=str(device_class)))

    def add_info(self, msg: str, device="", value="", expected_value="", device_class=''):
        """
        Add info entry
        :param msg:
        :param device:
        :param value:
        :param expected_value:
        :param device_class:
        """
        self.add(msg=msg, severity=LogSeverity.Information, device=device, value=value,
                 expected_value=expected_value, device_class=device_class)

    def add_warning(self, msg: str, device="", value="", expected_value="", device_class=''):
        """
        Add warning entry
        :param msg:
        :param device:
        :param value:
        :param expected_value:
        :param device_class:
        """
        self.add(msg=msg, severity=LogSeverity.Warning, device=device, value=value,
                 expected_value=expected_value, device_class=device_class)

    def add_error(self, msg: str, device="", value="", expected_value="", device_class=''):
        """
        Add error entry
        :param msg:
        :param device:
        :param value:
        :param expected_value:
        :param device_class:
        """
        self.add(msg=msg, severity=LogSeverity.Error, device=device, value=value,
                 expected_value=expected_value, device_class=device_class)

    def add_divergence(self, msg, device="", value=0.0, expected_value=0.0, tol=1e-6):
        """
        Add divergence entry, only if the values differ more than the tolerance
        :param msg:
        :param device:
        :param value:
        :param expected_value:
        :param tol:
        """
        if abs(value - expected_value) > tol:
            self.add(msg=msg, severity=LogSeverity.Divergence, device=device, value=value,
                     expected_value=expected_value)

    def to_dict(self) -> Dict[str, Dict[str, List[List[Any]]]]:
        """
        Get the logs sorted by severity and message
        :return: Dictionary[Dictionary[List[time, class, device, value, expected value]]]
        """
        by_severity = dict()

        for e in self.entries:

            by_msg = by_severity.setdefault(e.severity.value, dict())
            by_msg.setdefault(e.msg, list()).append([e.time, e.device_class, e.device,
                                                     e.value, e.expected_value])

        return by_severity

    def to_df(self) -> pd.DataFrame:
        """
        Get DataFrame
        :return: DataFrame
        """
        data = [e.to_list() for e in self.entries]
        df = pd.DataFrame(data=data, columns=['Time', 'Severity', 'Message', 'Class',
                                              'Device', 'Value', 'Expected value'])
        df.set_index('Time', inplace=True)
        return df

    def print(self) -> None:
        """
        Print the logs
        """
        print(self.to_df())

    def __str__(self):

        val = ''
        for e in self.entries:
            val += str(e) + '\n'
        return val

    def __getitem__(self, key):
        """
        get [index] implementation
        :param key: integer
        :return: LogEntry
        """
        return self.entries[key]

    def __iadd__(self, other: "Logger"):
        """
        += implementation
        :param other:
        :return:
        """

        if other is not None:
            self.entries += other.entries
        return self

    def __len__(self) -> int:
        return len(self.entries)

    def size(self) -> int:
        """
        Number of logs
        :return: size
        """
        return len(self.entries)

    def count_type(self, severity: LogSeverity) -> int:
        """
        Count the number of entries of a certain severity
        :param severity: LogSeverity
        :return: number of occurrences
        """
        c = 0
        for entry in self.entries:
            if entry.severity == severity:
                c += 1

        return c

    def info_count(self) -> int:
        """
        Count the number of information occurrences
        :return:
        """
        return self.count_type(LogSeverity.Information)

    def warning_count(self) -> int:
        """
        Count number of warnings
        :return:
        """
        return self.count_type(LogSeverity.Warning)

    def error_count(self) -> int:
        """
        Count number of errors
        :return:
        """
        return self.count_type(LogSeverity.Error)


class ConvergenceReport:
    """
    Convergence report, one row per numerical method run
    """

    def __init__(self) -> None:
        """
        Constructor
        """
        self.methods_ = list()
        self.converged_ = list()
        self.error_ = list()
        self.elapsed_ = list()
        self.iterations_ = list()

    def add(self, method, converged: bool, error: float, elapsed: float, iterations: int):
        """

        :param method: SolverType
        :param converged: converged?
        :param error: final mismatch error
        :param elapsed: elapsed seconds
        :param iterations: number of iterations
        """
        self.methods_.append(method)
        self.converged_.append(converged)
        self.error_.append(error)
        self.elapsed_.append(elapsed)
        self.iterations_.append(iterations)

    def converged(self) -> bool:
        """

        :return:
        """
        if len(self.converged_) > 0:
            return self.converged_[-1]
        else:
            return False

    def error(self) -> float:
        """

        :return:
        """
        if len(self.error_) > 0:
            return self.error_[-1]
        else:
            return 0.0

    def elapsed(self) -> float:
        """

        :return:
        """
        return float(sum(self.elapsed_))

    def iterations(self) -> int:
        """
        Total number of iterations along all the runs
        :return:
        """
        return int(sum(self.iterations_))

    def to_dataframe(self) -> pd.DataFrame:
        """

        :return:
        """
        data = {'Method': [str(m) for m in self.methods_],
                'Converged?': self.converged_,
                'Error': self.error_,
                'Elapsed (s)': self.elapsed_,
                'Iterations': self.iterations_}

        return pd.DataFrame(data)
